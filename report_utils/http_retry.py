"""
Report Fetch Retry Utility

レポートAPIの呼び出しを、HTTP 200 が返るまで固定間隔でリトライします。
成功時はレスポンスからデータを取り出して正規化し、
全試行の記録 (AttemptRecord のリスト) と一緒に返します。

リトライ上限に達しても例外にはせず、データなし + 試行記録を返します。
呼び出し側で処理を中断するか、空の結果で続行するかを判断してください。
"""

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from report_utils.report_data import array_to_object, extract_data_property, get_length
from report_utils.request_builder import build_request_descriptor


# ===================================================================
# 設定
# ===================================================================
MAX_ATTEMPTS = 10
RETRY_DELAY_SECONDS = 5
SUCCESS_STATUS = 200


@dataclass(frozen=True)
class RetryPolicy:
    """固定間隔のリトライ設定 (指数バックオフではない)。"""

    max_attempts: int = MAX_ATTEMPTS
    delay_seconds: float = RETRY_DELAY_SECONDS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts は1以上を指定してください。")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds は0以上を指定してください。")


@dataclass
class AttemptRecord:
    """1回分の試行の記録。"""

    attempt_number: int
    http_status: Optional[int]
    elapsed_ms: int
    error_message: Optional[str] = None
    length: Optional[int] = None

    @property
    def succeeded(self):
        return self.http_status == SUCCESS_STATUS and self.error_message is None


@dataclass(frozen=True)
class TransportResponse:
    """
    署名付きHTTPクライアントからの応答。
    接続エラーの場合は status が None で error にエラー内容が入ります。
    """

    status: Optional[int] = None
    body: bytes = b""
    error: Optional[str] = None


class UnrecoverableTransportError(Exception):
    """ステータスもエラー内容も持たない、分類できない応答を受け取った場合のエラー。"""

    def __init__(self, message, attempts=None):
        super().__init__(message)
        self.attempts = list(attempts or [])


class RetryState(Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


def next_state(policy, attempt_number, succeeded):
    """試行結果から次の状態を決めます。"""
    if succeeded:
        return RetryState.SUCCEEDED
    if attempt_number >= policy.max_attempts:
        return RetryState.EXHAUSTED
    return RetryState.ATTEMPTING


class ReportFetcher:
    """
    レポートAPIの取得処理。

    Args:
        transport: RequestDescriptor を受け取り TransportResponse を返す呼び出し可能オブジェクト
        policy: リトライ設定 (省略時は10回・5秒間隔)
        sleep: 待機関数 (テスト用)
        clock: 経過時間計測用の時計 (テスト用)
    """

    def __init__(self, transport, policy=None, sleep=time.sleep, clock=time.monotonic):
        self.transport = transport
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    def fetch(self, spec):
        """
        レポートデータを取得します。

        Args:
            spec: ReportRequestSpec

        Returns:
            tuple: (data, attempts)
                data: 正規化済みのデータ (取得できなかった場合は None)
                attempts: AttemptRecord のリスト

        Raises:
            UnrecoverableTransportError: 分類できない応答を受け取った場合
        """
        descriptor = build_request_descriptor(spec)
        attempts = []
        data = None

        state = RetryState.ATTEMPTING
        attempt_number = 0
        while state is RetryState.ATTEMPTING:
            attempt_number += 1
            print(f"Attempt #{attempt_number} for {spec.path}")

            record, data = self._attempt(spec, descriptor, attempt_number, attempts)
            attempts.append(record)
            state = next_state(self.policy, attempt_number, record.succeeded)

            if state is RetryState.SUCCEEDED:
                break

            print(f"No luck (HTTP {record.http_status})")
            data = None
            if state is RetryState.EXHAUSTED:
                summary = f"{self.policy.max_attempts} unsuccessful attempts to Akamai {{OPEN}} API"
                record.error_message = f"{summary}: {record.error_message}" if record.error_message else summary
                print(f"  -> Error: {summary} ({spec.path})")
                break

            self._sleep(self.policy.delay_seconds)

        return data, attempts

    def _attempt(self, spec, descriptor, attempt_number, attempts):
        timer_start = self._clock()
        response = self.transport(descriptor)
        elapsed_ms = int(round(abs(self._clock() - timer_start) * 1000))

        if response is None or (response.status is None and not response.error):
            raise UnrecoverableTransportError(
                f"分類できない応答を受け取りました: {spec.path} (Attempt #{attempt_number})",
                attempts,
            )

        if response.status != SUCCESS_STATUS:
            return AttemptRecord(attempt_number, response.status, elapsed_ms, response.error), None

        try:
            payload = json.loads(response.body)
        except (TypeError, ValueError) as e:
            return AttemptRecord(attempt_number, response.status, elapsed_ms, f"invalid JSON body: {e}"), None

        data = extract_data_property(payload, spec.data_property)
        length = get_length(data)
        if spec.array_to_object and isinstance(data, list):
            data = array_to_object(data, spec.object_key)

        return AttemptRecord(attempt_number, response.status, elapsed_ms, length=length), data
