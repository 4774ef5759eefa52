from typing import Dict

from balance import Balance


class AccountBook:
    """Client balances keyed by client id. Accounts are created lazily and never removed."""

    def __init__(self):
        self._accounts: Dict[int, Balance] = {}

    def get_or_create_account(self, client_id: int) -> Balance:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = Balance(client_id=client_id)
        return self._accounts[client_id]

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def get_all_accounts(self) -> Dict[int, Balance]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
