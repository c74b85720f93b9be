"""
Akamai EdgeGrid Transport

このモジュールは、EdgeGrid 署名付きのHTTPリクエストを送信する共通機能を提供します。
認証情報は .edgerc ファイルから読み込みます。

環境変数:
- EDGERC_PATH: .edgerc ファイルのパス (デフォルト: ~/.edgerc)
- EDGERC_SECTION: 使用するセクション (デフォルト: default)
- ACCOUNT_SWITCH_KEY: アカウントスコープキー (不明な場合は未設定)
"""

import json
import os
from pathlib import Path
from urllib.parse import urljoin

import requests
from akamai.edgegrid import EdgeGridAuth, EdgeRc

from report_utils.http_retry import TransportResponse


# ===================================================================
# 設定
# ===================================================================
DEFAULT_EDGERC_PATH = "~/.edgerc"
DEFAULT_EDGERC_SECTION = "default"
REQUEST_TIMEOUT_SECONDS = 60


def get_account_switch_key():
    """環境変数からアカウントスコープキーを取得します (未設定の場合は空文字)。"""
    return os.environ.get("ACCOUNT_SWITCH_KEY", "")


def load_edgerc(edgerc_path=None, section=None):
    """
    .edgerc ファイルを読み込みます。

    Returns:
        tuple: (EdgeRc, section, base_url)

    Raises:
        FileNotFoundError: .edgerc ファイルが見つからない場合
        ValueError: 指定したセクションが存在しない場合
    """
    path = Path(edgerc_path or os.environ.get("EDGERC_PATH", DEFAULT_EDGERC_PATH)).expanduser()
    section = section or os.environ.get("EDGERC_SECTION", DEFAULT_EDGERC_SECTION)

    if not path.exists():
        raise FileNotFoundError(
            f"認証情報ファイルが見つかりません: {path}\n"
            "EDGERC_PATH 環境変数で .edgerc ファイルのパスを指定してください。"
        )

    edgerc = EdgeRc(str(path))
    if not edgerc.has_section(section):
        raise ValueError(f".edgerc にセクション [{section}] がありません: {path}")

    base_url = f"https://{edgerc.get(section, 'host')}"
    return edgerc, section, base_url


class EdgeGridTransport:
    """
    RequestDescriptor を EdgeGrid 署名付きで送信し、TransportResponse を返します。
    接続エラー (requests.RequestException) はエラー内容を入れた応答に変換します。

    session を渡した場合、その session.auth は EdgeGrid 認証で上書きされます。
    """

    def __init__(self, edgerc_path=None, section=None, timeout=REQUEST_TIMEOUT_SECONDS, session=None):
        edgerc, section, self.base_url = load_edgerc(edgerc_path, section)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = EdgeGridAuth.from_edgerc(edgerc, section)
        print(f"-> EdgeGrid 認証情報を読み込みました (section: {section})")

    def __call__(self, descriptor):
        kwargs = {"headers": descriptor.headers, "timeout": self.timeout}
        if descriptor.method != "GET" and descriptor.body is not None:
            kwargs["data"] = json.dumps(descriptor.body)

        try:
            response = self.session.request(
                descriptor.method,
                urljoin(self.base_url, descriptor.uri),
                **kwargs
            )
        except requests.RequestException as e:
            print(f"  -> Error: APIへの接続に失敗しました: {e}")
            return TransportResponse(error=f"{type(e).__name__}: {e}")

        return TransportResponse(status=response.status_code, body=response.content)
