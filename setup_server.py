#!/usr/bin/env python3
"""
TaxDesk Server - Setup and Deployment Script

This script initializes the TaxDesk server for deployment:
1. Creates SQLite database with schema
2. Creates the bootstrap admin user
3. Initializes the upload directory structure
4. Populates default settings

Usage:
    python setup_server.py
"""

import sys
from pathlib import Path

# Ensure we can import from the same directory
sys.path.insert(0, str(Path(__file__).parent))

import config
from managers.database_manager import DatabaseManager
from file_storage import InitializeStorage


def print_header():
    """Print script header"""
    print("=" * 70)
    print("TaxDesk Server - Setup and Deployment Script")
    print("=" * 70)
    print()


def print_section(title):
    print()
    print("-" * 70)
    print(f"  {title}")
    print("-" * 70)


def initialize_database():
    """
    Initialize the SQLite database with schema and default data

    Returns:
        str or None: Admin password if created, None otherwise
    """
    print_section("Database Initialization")

    db_path = Path(config.DATABASE_PATH)

    if db_path.exists():
        print(f"[OK] Database file found at: {db_path.absolute()}")
        print("  Existing database will be updated with any missing tables/settings.")
    else:
        print(f"-> Creating new database at: {db_path.absolute()}")

    print()

    try:
        db_manager = DatabaseManager(config.DATABASE_PATH)
        admin_password = db_manager.InitializeDatabase(config.ADMIN_EMAIL)

        print()
        print("[OK] Database initialization complete!")

        return admin_password

    except Exception as e:
        print(f"[ERROR] Database initialization failed: {str(e)}")
        raise


def initialize_storage():
    """Initialize the upload directory structure"""
    print_section("Upload Directory Initialization")

    uploads_path = Path(config.UPLOADS_DIR)
    print(f"-> Initializing uploads at: {uploads_path.absolute()}")

    try:
        InitializeStorage(uploads_path)
        print("[OK] Upload directory ready")

    except Exception as e:
        print(f"[ERROR] Storage initialization failed: {str(e)}")
        raise


def print_admin_credentials(password):
    """
    Print admin credentials prominently

    Args:
        password: Generated admin password
    """
    print()
    print("!" * 70)
    print("!  IMPORTANT: SAVE THESE CREDENTIALS - PASSWORD SHOWN ONLY ONCE!")
    print("!" * 70)
    print()
    print(f"  Admin E-mail:   {config.ADMIN_EMAIL}")
    print(f"  Admin Password: {password}")
    print()
    print("  -> Use POST /api/change-password after the first login")


def main():
    """Main setup script entry point"""
    print_header()

    try:
        response = input("Continue with setup? (Y/n): ")
        if response.lower() == 'n':
            print("\nSetup cancelled.")
            sys.exit(0)
    except KeyboardInterrupt:
        print("\n\nSetup cancelled.")
        sys.exit(0)

    try:
        admin_password = initialize_database()
    except Exception:
        print("\n[ERROR] Setup failed during database initialization")
        sys.exit(1)

    try:
        initialize_storage()
    except Exception:
        print("\n[ERROR] Setup failed during storage initialization")
        sys.exit(1)

    print()
    print("=" * 70)
    print("[OK] TaxDesk Server Setup Complete!")
    print("=" * 70)

    if admin_password:
        print_admin_credentials(admin_password)
    else:
        print()
        print("  Database already contained users - no new admin account created.")

    print()
    print(f"Start the server with: python server.py  (listens on {config.HOST}:{config.PORT})")
    print()


if __name__ == "__main__":
    main()
