#!/usr/bin/env python3
"""
Setup Verification Script

Validates configuration and provider connectivity before running the relay.
Run this after setting up your .env file to ensure everything is configured correctly.

Usage:
    python scripts/verify_setup.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables
from dotenv import load_dotenv
load_dotenv()


def print_header(title: str) -> None:
    """Print section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print(f"{'='*60}")


def print_result(name: str, success: bool, message: str = "") -> None:
    """Print check result."""
    status = "[PASS]" if success else "[FAIL]"
    color = "\033[92m" if success else "\033[91m"
    reset = "\033[0m"
    msg = f" - {message}" if message else ""
    print(f"  {color}{status}{reset} {name}{msg}")


def check_env_file() -> bool:
    """Check if .env file exists."""
    env_path = project_root / ".env"
    exists = env_path.exists()
    if not exists:
        print_result(".env file", False, "File not found. Copy .env.example to .env")
    else:
        print_result(".env file", True, "Found")
    return exists


def check_required_vars() -> dict[str, bool]:
    """Check required environment variables."""
    results = {}

    required = [
        ("DB_HOST", "Required for the patient store"),
        ("DB_USER", "Required for the patient store"),
        ("DB_NAME", "Required for the patient store"),
        ("GMAIL_USER", "Required for sending email"),
        ("GMAIL_PASS", "Required for sending email"),
        ("TWILIO_ACCOUNT_SID", "Required for sending SMS"),
        ("TWILIO_AUTH_TOKEN", "Required for sending SMS"),
        ("TWILIO_PHONE_NUMBER", "Required for sending SMS"),
    ]

    for var, description in required:
        value = os.getenv(var, "")

        if not value:
            print_result(var, False, f"Not set - {description}")
            results[var] = False
        else:
            # Mask sensitive values
            if "PASS" in var or "TOKEN" in var:
                masked = f"{value[:4]}...{value[-2:]}" if len(value) > 8 else "***"
            else:
                masked = value
            print_result(var, True, f"Set ({masked})")
            results[var] = True

    return results


def check_optional_vars() -> None:
    """Check optional environment variables."""
    optional = [
        ("APP_ENV", "development"),
        ("DEBUG", "false"),
        ("PORT", "5000"),
        ("DB_PORT", "3306"),
        ("UPLOAD_DIR", "uploads"),
        ("CLEANUP_ATTACHMENT_ON_FAILURE", "false"),
    ]

    for var, default in optional:
        value = os.getenv(var, default)
        print_result(var, True, f"{value}")


def check_upload_dir() -> bool:
    """Verify the staging directory is writable."""
    from app.config import get_settings

    upload_dir = Path(get_settings().upload_dir)
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        probe = upload_dir / ".write-test"
        probe.write_bytes(b"")
        probe.unlink()
    except OSError as e:
        print_result("Upload directory", False, str(e)[:50])
        return False

    print_result("Upload directory", True, f"Writable ({upload_dir.resolve()})")
    return True


async def check_database() -> bool:
    """Verify the patient store connection."""
    from app.config import get_settings
    from app.infra.database import check_db_health, close_db, create_engine

    engine = create_engine(get_settings())
    try:
        healthy = await check_db_health(engine)
    finally:
        await close_db(engine)

    if healthy:
        print_result("Patient store", True, "Connection successful")
    else:
        print_result("Patient store", False, "Connection failed")
    return healthy


async def check_smtp() -> bool:
    """Verify the SMTP login works."""
    import aiosmtplib

    from app.config import get_settings

    settings = get_settings()
    smtp = aiosmtplib.SMTP(
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        use_tls=settings.smtp_use_tls,
        start_tls=False if settings.smtp_use_tls else settings.smtp_start_tls,
        timeout=10,
    )

    try:
        await smtp.connect()
        await smtp.login(settings.gmail_user, settings.gmail_pass)
        await smtp.quit()
    except (aiosmtplib.SMTPException, OSError) as e:
        print_result("SMTP", False, str(e)[:50])
        return False

    print_result("SMTP", True, f"Logged in to {settings.smtp_host}")
    return True


async def check_twilio() -> bool:
    """Verify the Twilio credentials by fetching the account."""
    import httpx

    from app.config import get_settings

    settings = get_settings()
    url = (
        f"{settings.twilio_api_base}/2010-04-01/Accounts/"
        f"{settings.twilio_account_sid}.json"
    )

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                url,
                auth=(settings.twilio_account_sid, settings.twilio_auth_token),
            )
    except httpx.HTTPError as e:
        print_result("Twilio API", False, f"Not reachable: {str(e)[:40]}")
        return False

    if response.status_code == 200:
        print_result("Twilio API", True, "Credentials validated")
        return True

    print_result("Twilio API", False, f"Responded with {response.status_code}")
    return False


def check_dependencies() -> bool:
    """Check if required Python packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "pydantic",
        "pydantic_settings",
        "multipart",
        "sqlalchemy",
        "aiomysql",
        "httpx",
        "aiosmtplib",
    ]

    missing = []
    for package in required_packages:
        try:
            __import__(package)
        except ImportError:
            missing.append(package)

    if missing:
        print_result("Python packages", False, f"Missing: {', '.join(missing)}")
        return False
    else:
        print_result("Python packages", True, "All required packages installed")
        return True


async def main():
    """Run all verification checks."""
    print("\n" + "="*60)
    print(" Patient Relay - Setup Verification")
    print("="*60)

    all_passed = True
    critical_failed = False

    # Check .env file
    print_header("Environment File")
    if not check_env_file():
        all_passed = False

    # Check dependencies
    print_header("Python Dependencies")
    if not check_dependencies():
        print("\n  Install with: pip install -e .")
        return 1

    # Check required variables
    print_header("Required Environment Variables")
    var_results = check_required_vars()
    if not all(var_results.values()):
        all_passed = False

    # Check optional variables
    print_header("Optional Environment Variables")
    check_optional_vars()

    print_header("Local Storage")
    if not check_upload_dir():
        all_passed = False
        critical_failed = True

    print_header("Service Connections")

    # The server refuses to start without the store
    if var_results.get("DB_HOST") and var_results.get("DB_NAME"):
        if not await check_database():
            all_passed = False
            critical_failed = True
    else:
        print_result("Patient store", False, "Skipped - DB_HOST/DB_NAME not set")
        critical_failed = True

    if var_results.get("GMAIL_USER") and var_results.get("GMAIL_PASS"):
        if not await check_smtp():
            all_passed = False
    else:
        print_result("SMTP", False, "Skipped - GMAIL_USER/GMAIL_PASS not set")

    if var_results.get("TWILIO_ACCOUNT_SID") and var_results.get("TWILIO_AUTH_TOKEN"):
        if not await check_twilio():
            all_passed = False
    else:
        print_result("Twilio API", False, "Skipped - Twilio credentials not set")

    # Summary
    print_header("Summary")

    if critical_failed:
        print("\n  \033[91mCRITICAL: The server cannot start with this configuration.\033[0m")
        print("  Please fix the issues above before running the application.")
        print()
        return 1
    elif not all_passed:
        print("\n  \033[93mWARNING: Some provider checks failed.\033[0m")
        print("  The server will start, but email or SMS sends may fail.")
        print()
        return 0
    else:
        print("\n  \033[92mAll checks passed!\033[0m")
        print("  You can start the application with:")
        print("    uvicorn app.main:app --port 5000")
        print()
        return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
