"""Firestore クライアントの生成。"""

import os

from google.auth import default as google_auth_default
from google.cloud import firestore
from google.oauth2 import service_account

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


def build_credentials():
    """認証情報を取得する。

    GOOGLE_APPLICATION_CREDENTIALS のサービスアカウントキーがあればそれを、
    無ければ Application Default Credentials を使う。
    """
    key_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if key_path and os.path.exists(key_path):
        return service_account.Credentials.from_service_account_file(key_path, scopes=SCOPES)
    creds, _ = google_auth_default(scopes=SCOPES)
    return creds


def create_firestore_client(project: str | None = None) -> firestore.AsyncClient:
    """Firestore の非同期クライアントを生成する。

    Args:
        project: プロジェクトID。None なら認証情報から判定される。
    """
    return firestore.AsyncClient(project=project or None, credentials=build_credentials())
