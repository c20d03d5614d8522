#!/usr/bin/env python3
"""Clip Studio — Environment Setup Checker

Validates the Python environment, settings file and provider API keys
before running Clip Studio for the first time, then shows which generation
providers the router would register.

Usage:
    python scripts/setup_check.py              # full check
    python scripts/setup_check.py --quick      # essential packages only
    python scripts/setup_check.py --providers  # provider registry only
"""
from __future__ import annotations

import argparse
import importlib
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

# ── Paths ─────────────────────────────────────────────────────────────────────
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
CONFIG_DIR = REPO_ROOT / "backend" / "config"
SETTINGS_YAML = CONFIG_DIR / "settings.yaml"

# ── ANSI colours ──────────────────────────────────────────────────────────────
GREEN  = "\033[92m"
YELLOW = "\033[93m"
RED    = "\033[91m"
BLUE   = "\033[94m"
RESET  = "\033[0m"
BOLD   = "\033[1m"


def ok(msg: str) -> str:
    return f"  {GREEN}✓{RESET}  {msg}"


def warn(msg: str) -> str:
    return f"  {YELLOW}⚠{RESET}  {msg}"


def err(msg: str) -> str:
    return f"  {RED}✗{RESET}  {msg}"


def section(title: str) -> None:
    print(f"\n{BOLD}{BLUE}━━ {title} ━━{RESET}")


# ── Result accumulator ────────────────────────────────────────────────────────
@dataclass
class CheckResult:
    passed: int = 0
    warned: int = 0
    failed: int = 0
    messages: List[tuple] = field(default_factory=list)

    def add(self, level: str, msg: str) -> None:
        self.messages.append((level, msg))
        if level == "ok":
            self.passed += 1
            print(ok(msg))
        elif level == "warn":
            self.warned += 1
            print(warn(msg))
        else:
            self.failed += 1
            print(err(msg))

    def print_summary(self) -> None:
        section("Summary")
        total = self.passed + self.warned + self.failed
        print(f"  {GREEN}{self.passed}{RESET} passed  "
              f"{YELLOW}{self.warned}{RESET} warnings  "
              f"{RED}{self.failed}{RESET} failed  "
              f"({total} checks)")

    @property
    def exit_code(self) -> int:
        return 0 if self.failed == 0 else 1


# ── Individual checks ─────────────────────────────────────────────────────────


def check_python_version(result: CheckResult) -> None:
    section("Python")
    major, minor = sys.version_info[:2]
    if (major, minor) >= (3, 10):
        result.add("ok", f"Python {major}.{minor}")
    else:
        result.add("fail", f"Python {major}.{minor} — need 3.10+")


def check_python_packages(result: CheckResult, quick: bool) -> None:
    section("Python packages")
    # import name -> distribution name
    required = {
        "fastapi": "fastapi",
        "pydantic": "pydantic",
        "yaml": "pyyaml",
        "dotenv": "python-dotenv",
        "httpx": "httpx",
        "numpy": "numpy",
        "uvicorn": "uvicorn",
        "pytest": "pytest",
    }
    if quick:
        required = {k: required[k] for k in ("fastapi", "pydantic", "httpx", "numpy")}
        result.add("warn", "Quick mode — checking essential packages only")

    for module, dist in required.items():
        try:
            importlib.import_module(module)
            result.add("ok", dist)
        except ImportError:
            level = "warn" if dist in ("uvicorn", "pytest") else "fail"
            result.add(level, f"{dist} not installed")


def check_settings(result: CheckResult) -> None:
    section("Configuration")
    path = os.environ.get("CLIP_STUDIO_CONFIG", str(SETTINGS_YAML))
    try:
        from backend.services.shared.config import Config
        cfg = Config(path)
    except ImportError as exc:
        result.add("fail", f"Cannot import config loader: {exc}")
        return
    except (FileNotFoundError, ValueError) as exc:
        result.add("fail", f"settings: {exc}")
        return
    result.add("ok", f"settings loaded from {path}")

    for key in ("providers.backoff_sec", "preparation.min_confidence", "cost.per_capability"):
        if cfg.get(key) is None:
            result.add("warn", f"{key} not set — built-in default applies")


def check_api_keys(result: CheckResult) -> None:
    section("Provider API keys")
    keys = {
        "GEMINI_API_KEY": "Google Veo (quality tier)",
        "FAL_API_KEY":    "Fal.ai Stable Video Diffusion (balanced tier)",
        "RUNWAY_API_KEY": "Runway Gen-3 (quality tier)",
    }
    found = 0
    for var, desc in keys.items():
        val = os.environ.get(var, "")
        if val:
            masked = val[:4] + "..." + val[-4:] if len(val) > 8 else "****"
            result.add("ok", f"{var}: {masked}  ({desc})")
            found += 1
        else:
            print(f"  {RESET}○  {var}: not set (optional) — {desc}")
    if not found:
        result.add("warn", "No provider keys set — generation will use the mock provider")


def check_providers(result: CheckResult) -> None:
    section("Provider registry")
    try:
        from backend.services.generation.provider_router import ProviderRouter
    except ImportError as exc:
        result.add("fail", f"Cannot import provider router: {exc}")
        return
    router = ProviderRouter()
    for info in router.describe_providers():
        label = "simulated" if info["simulated"] else info["cost_tier"]
        result.add("ok", f"{info['name']} ({label})")


# ── Main ──────────────────────────────────────────────────────────────────────


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Clip Studio environment setup checker"
    )
    parser.add_argument("--providers", action="store_true", help="Check the provider registry only")
    parser.add_argument("--quick", action="store_true", help="Check essential packages only")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    result = CheckResult()

    print(f"\n{BOLD}Clip Studio — Setup Checker{RESET}")
    print(f"Repo root: {REPO_ROOT}")

    if args.providers:
        check_api_keys(result)
        check_providers(result)
    else:
        check_python_version(result)
        check_python_packages(result, quick=args.quick)
        check_settings(result)
        check_api_keys(result)
        check_providers(result)

    result.print_summary()
    print()

    if result.failed == 0 and result.warned == 0:
        print(f"{GREEN}{BOLD}✓ All checks passed — Clip Studio is ready!{RESET}\n")
    elif result.failed == 0:
        print(f"{YELLOW}{BOLD}⚠ Setup complete with warnings — Clip Studio will run "
              f"but some providers may be unavailable.{RESET}\n")
    else:
        print(f"{RED}{BOLD}✗ {result.failed} check(s) failed — resolve errors before "
              f"running Clip Studio.{RESET}\n")

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
