"""認証状態から記録のスコープを決める Tenancy Resolver。"""

from abc import ABC, abstractmethod

from weight_tracker.interfaces.errors import NotAuthenticated
from weight_tracker.interfaces.record_store import GLOBAL_SCOPE, Identity, Scope


class TenancyResolver(ABC):
    """Identity → Scope の写像。"""

    requires_identity: bool = False

    @abstractmethod
    def resolve(self, identity: Identity | None) -> Scope:
        """現在の認証状態に対応するスコープを返す。"""
        ...


class SingleTenantResolver(TenancyResolver):
    """認証状態に関係なく常に全体共有スコープを返す。"""

    def resolve(self, identity: Identity | None) -> Scope:
        return GLOBAL_SCOPE


class MultiTenantResolver(TenancyResolver):
    """サインイン中のユーザーごとのスコープを返す。

    未サインインでの解決は NotAuthenticated。
    """

    requires_identity = True

    def resolve(self, identity: Identity | None) -> Scope:
        if identity is None or not identity.uid:
            raise NotAuthenticated("Sign in to access your records")
        return Scope(tenant_id=identity.uid)
