"""Vault client wrapper for secrets management"""
import os
import requests
from typing import Dict, Optional


class VaultClient:
    """HashiCorp Vault API client (KV read and write)"""

    def __init__(self, addr: Optional[str] = None, token: Optional[str] = None, timeout: float = 2):
        self.addr = (addr or os.getenv('VAULT_ADDR', 'http://127.0.0.1:8200')).rstrip('/')
        self.token = token or os.getenv('VAULT_TOKEN', '')
        self.timeout = timeout

    def is_connected(self) -> bool:
        """Check if Vault is accessible and a token is configured"""
        if not self.token:
            return False
        try:
            resp = requests.get(f"{self.addr}/v1/sys/health", timeout=self.timeout)
        except requests.RequestException:
            return False
        return resp.status_code == 200

    def kv_put(self, path: str, data: Dict) -> bool:
        """Write secret to KV store"""
        headers = {"X-Vault-Token": self.token}
        resp = requests.post(f"{self.addr}/v1/{path}", headers=headers, json=data, timeout=self.timeout)
        return resp.status_code in [200, 204]

    def kv_get(self, path: str) -> Optional[Dict]:
        """
        Read secret from KV store (supports both KV v1 and v2).

        Args:
            path: Secret path, e.g. 'secret/backoffice/api_token'

        Returns:
            Secret key/value dict, or None if the path does not exist
        """
        headers = {"X-Vault-Token": self.token}

        # KV v2 nests the payload under data.data and needs /data/ in the path
        if path.startswith('secret/') and '/data/' not in path:
            v2_path = path.replace('secret/', 'secret/data/', 1)
            resp = requests.get(f"{self.addr}/v1/{v2_path}", headers=headers, timeout=self.timeout)
            if resp.status_code == 200:
                data = resp.json().get('data', {})
                if 'data' in data:
                    return data['data']

        resp = requests.get(f"{self.addr}/v1/{path}", headers=headers, timeout=self.timeout)
        if resp.status_code == 200:
            return resp.json().get('data', {})
        return None
