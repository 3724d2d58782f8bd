#!/usr/bin/env python3
"""
Vault Secrets Setup Script

Stores the back-office API token in HashiCorp Vault so the resolution
service can call the back office without BACKOFFICE_API_TOKEN in its
environment.

Usage:
    python3 scripts/setup_vault_secrets.py

Environment Variables (optional - for non-interactive mode):
    BACKOFFICE_API_TOKEN - Back-office API bearer token

Requirements:
    - Vault server must be running and accessible
    - VAULT_ADDR and VAULT_TOKEN environment variables must be set
"""

import getpass
import os
import sys

# Add project root to path to import common modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.vault_client import VaultClient

TOKEN_PATH = "secret/backoffice/api_token"


def check_vault_connectivity():
    """
    Verify Vault server is accessible before attempting operations.

    Returns:
        VaultClient: Initialized client if Vault is accessible

    Exits with code 1 if Vault is not accessible.
    """
    print("Checking Vault connectivity...")

    vault = VaultClient()

    if not vault.is_connected():
        print("\n" + "="*60)
        print("ERROR: Cannot connect to Vault server")
        print("="*60)
        print(f"\nVault Address: {vault.addr}")
        print(f"Vault Token: {'[set]' if vault.token else '[NOT SET]'}")
        print("\nStart a dev server and export its address and token:")
        print("  $ vault server -dev -dev-root-token-id=\"dev-token\"")
        print("  export VAULT_ADDR='http://127.0.0.1:8200'")
        print("  export VAULT_TOKEN='dev-token'")
        print("="*60)
        sys.exit(1)

    print("✓ Vault connection successful\n")
    return vault


def prompt_for_secret(prompt_text, env_var_name=None):
    """
    Read a secret from env_var_name, or prompt for it with hidden input.

    Re-prompts on empty input; Ctrl+C cancels the setup.
    """
    if env_var_name:
        value = os.getenv(env_var_name)
        if value:
            print(f"Using {env_var_name} from environment")
            return value.strip()

    while True:
        try:
            secret = getpass.getpass(prompt_text).strip()
        except KeyboardInterrupt:
            print("\n\nSetup cancelled by user.")
            sys.exit(0)
        if secret:
            return secret
        print("Error: Value cannot be empty. Please try again.")


def store_api_token(vault, token):
    """
    Write the back-office token and read it back.

    Returns:
        bool: True if the stored token is retrievable
    """
    print(f"Storing back-office API token at {TOKEN_PATH}...")
    if not vault.kv_put(TOKEN_PATH, {"token": token}):
        print("✗ Failed to store back-office API token\n")
        return False

    stored = vault.kv_get(TOKEN_PATH)
    if not stored or stored.get("token") != token:
        print(f"✗ {TOKEN_PATH} - FAILED (token missing after write)\n")
        return False

    print("✓ Back-office API token stored and verified\n")
    return True


def main():
    """Main entry point for Vault secrets setup."""
    print("\n" + "="*60)
    print(" Back-Office Resolution - Vault Secrets Setup")
    print("="*60)
    print()

    try:
        vault = check_vault_connectivity()
        token = prompt_for_secret("Enter back-office API token: ", env_var_name="BACKOFFICE_API_TOKEN")
        if not store_api_token(vault, token):
            return 1
    except Exception as e:
        print(f"\n✗ ERROR: {str(e)}")
        print("\nSetup failed. Please check the error message above and try again.")
        return 1

    print("To verify manually:")
    print(f"  $ vault kv get {TOKEN_PATH}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
