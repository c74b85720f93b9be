"""
Google Sheets Upload Utility

レポート結果を Google スプレッドシートに書き込みます。
Sheets API はレート制限がかかりやすいため、HttpError や接続エラーの場合は
30秒間隔で最大10回までリトライします。

環境変数:
- GOOGLE_APPLICATION_CREDENTIALS: サービスアカウントJSONのパス
"""

import os
import time

from google.auth.exceptions import TransportError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from report_utils.http_retry import AttemptRecord, RetryPolicy, RetryState, next_state


# ===================================================================
# 設定
# ===================================================================
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SHEETS_RETRY_POLICY = RetryPolicy(max_attempts=10, delay_seconds=30)
VALUE_INPUT_OPTION = "USER_ENTERED"
OPERATIONS = ("clear", "update", "append")


class SheetsUploadError(Exception):
    """リトライ上限までアップロードに失敗した場合のエラー。"""

    def __init__(self, message, attempts):
        super().__init__(message)
        self.attempts = list(attempts)


def get_sheets_service(credentials_path=None):
    """
    Sheets API v4 のサービスオブジェクトを作成します。

    Raises:
        ValueError: GOOGLE_APPLICATION_CREDENTIALS が設定されていない場合
    """
    credentials_path = credentials_path or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if not credentials_path:
        raise ValueError(
            "環境変数 GOOGLE_APPLICATION_CREDENTIALS が設定されていません。"
            "サービスアカウントJSONのパスを指定してください。"
        )

    credentials = service_account.Credentials.from_service_account_file(
        credentials_path,
        scopes=SHEETS_SCOPES
    )
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def _build_request(service, spreadsheet_id, operation, target_range, rows):
    values = service.spreadsheets().values()
    if operation == "clear":
        return values.clear(spreadsheetId=spreadsheet_id, range=target_range, body={})
    if operation == "update":
        return values.update(
            spreadsheetId=spreadsheet_id,
            range=target_range,
            valueInputOption=VALUE_INPUT_OPTION,
            body={"values": rows}
        )
    return values.append(
        spreadsheetId=spreadsheet_id,
        range=target_range,
        valueInputOption=VALUE_INPUT_OPTION,
        body={"values": rows}
    )


def upload_rows(service, spreadsheet_id, operation, target_range, rows=None,
                policy=SHEETS_RETRY_POLICY, sleep=time.sleep, clock=time.monotonic):
    """
    スプレッドシートの指定範囲をクリア・更新・追記します。

    Args:
        service: get_sheets_service() で作成したサービスオブジェクト
        spreadsheet_id: スプレッドシートID
        operation: 'clear' / 'update' / 'append'
        target_range: 対象範囲 (例: 'TopCpcodes!A2:C')
        rows: 書き込む行 (2次元リスト、clear の場合は不要)

    Returns:
        tuple: (status, elapsed_ms, attempts)

    Raises:
        ValueError: operation が不正な場合
        SheetsUploadError: リトライ上限に達した場合
    """
    if operation not in OPERATIONS:
        raise ValueError(f"不明な操作です: {operation} (利用可能: {', '.join(OPERATIONS)})")

    rows = rows or []
    attempts = []
    attempt_number = 0
    state = RetryState.ATTEMPTING
    while state is RetryState.ATTEMPTING:
        attempt_number += 1
        timer_start = clock()
        try:
            _build_request(service, spreadsheet_id, operation, target_range, rows).execute()
            record = AttemptRecord(attempt_number, 200, int(round((clock() - timer_start) * 1000)), length=len(rows))
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            record = AttemptRecord(attempt_number, int(status) if status else None,
                                   int(round((clock() - timer_start) * 1000)), str(e))
        except (OSError, TransportError) as e:
            record = AttemptRecord(attempt_number, None, int(round((clock() - timer_start) * 1000)),
                                   f"{type(e).__name__}: {e}")
        attempts.append(record)

        state = next_state(policy, attempt_number, record.succeeded)
        if state is RetryState.SUCCEEDED:
            print(f"  -> スプレッドシートへの書き込み成功 ({operation}: {target_range}, {len(rows)}行)")
            return record.http_status, record.elapsed_ms, attempts
        if state is RetryState.ATTEMPTING:
            print(f"  -> Warn: スプレッドシートへの書き込みに失敗しました (HTTP {record.http_status})。"
                  f"{policy.delay_seconds}秒後にリトライします... (試行 {attempt_number}/{policy.max_attempts})")
            sleep(policy.delay_seconds)

    raise SheetsUploadError(
        f"{policy.max_attempts} unsuccessful attempts to Google Sheets API ({operation}: {target_range})",
        attempts,
    )
