"""
Report Request Builder

レポートAPI呼び出し用のリクエスト (URI・ヘッダー・ボディ) を組み立てます。

クエリパラメータは以下の固定順序で付与します (指定がないものは省略):
accountSwitchKey (常に付与、不明な場合は空文字), 任意パラメータ文字列,
start, end, interval, groupId, contractId
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote

from report_utils.date_windows import DateWindow


# ===================================================================
# 設定
# ===================================================================
# Akamai API のパラメータ名 (フィールド名は account_switch_key)
ACCOUNT_SCOPE_PARAM = "accountSwitchKey"
DEFAULT_HEADERS = {"Content-Type": "application/json"}

# encodeURIComponent と同じく、英数字と -_.!~*'() 以外をエンコードする
_URI_COMPONENT_SAFE = "!~*'()"


class Interval(str, Enum):
    HOUR = "HOUR"
    DAY = "DAY"


@dataclass(frozen=True)
class ReportRequestSpec:
    """
    1回のレポート取得に必要な設定。

    Attributes:
        path: APIパス (例: '/reporting-api/v1/reports/hits-by-cpcode/versions/1/report-data')
        method: HTTPメソッド
        account_switch_key: アカウントスコープキー (不明な場合は None)
        window: レポート期間 (任意)
        start_date / end_date: フォーマット済みの期間 (window より優先、任意)
        interval: 集計粒度 (任意)
        group_id / contract_id: 任意
        params: 任意のクエリパラメータ文字列 (例: 'depth=ALL')
        headers: 追加ヘッダー (Content-Type より優先)
        body: リクエストボディ
        data_property: レスポンス内のデータ位置 (ドット区切り、例: 'data' / 'cpcodes')
        array_to_object: 配列をキー付きの辞書に変換するか
        object_key: array_to_object 時のキーとなるフィールド名
    """

    path: str
    method: str = "GET"
    account_switch_key: Optional[str] = None
    window: Optional[DateWindow] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    interval: Optional[Interval] = None
    group_id: Optional[str] = None
    contract_id: Optional[str] = None
    params: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    data_property: Optional[str] = None
    array_to_object: bool = False
    object_key: Optional[str] = None

    def __post_init__(self):
        if not self.path:
            raise ValueError("path を指定してください。")
        if self.array_to_object and not self.object_key:
            raise ValueError("array_to_object を指定する場合は object_key が必須です。")
        object.__setattr__(self, "method", self.method.upper())
        if self.interval is not None:
            object.__setattr__(self, "interval", Interval(self.interval))

    @property
    def start(self):
        if self.start_date is not None:
            return self.start_date
        return self.window.start_formatted if self.window else None

    @property
    def end(self):
        if self.end_date is not None:
            return self.end_date
        return self.window.end_formatted if self.window else None


@dataclass(frozen=True)
class RequestDescriptor:
    """署名付きHTTPクライアントに渡す、組み立て済みのリクエスト。"""

    uri: str
    method: str
    headers: Dict[str, str]
    body: Any = None


def build_uri(spec):
    query = [f"{ACCOUNT_SCOPE_PARAM}={spec.account_switch_key or ''}"]
    if spec.params:
        query.append(f"params={spec.params}")
    if spec.start is not None:
        query.append(f"start={quote(spec.start, safe=_URI_COMPONENT_SAFE)}")
    if spec.end is not None:
        query.append(f"end={quote(spec.end, safe=_URI_COMPONENT_SAFE)}")
    if spec.interval is not None:
        query.append(f"interval={spec.interval.value}")
    if spec.group_id:
        query.append(f"groupId={spec.group_id}")
    if spec.contract_id:
        query.append(f"contractId={spec.contract_id}")
    return f"{spec.path}?{'&'.join(query)}"


def build_request_descriptor(spec):
    """
    ReportRequestSpec から RequestDescriptor を組み立てます。

    Args:
        spec: ReportRequestSpec

    Returns:
        RequestDescriptor
    """
    headers = dict(DEFAULT_HEADERS)
    headers.update(spec.headers)
    return RequestDescriptor(
        uri=build_uri(spec),
        method=spec.method,
        headers=headers,
        body=spec.body,
    )
