"""
Top CP Codes Report Orchestrator

このファイルは、上位CPコードレポートを実行するオーケストレーターです。
Cloud Run Functionsのエントリポイントとして機能します。

テスト実行:
- 前週分 (金曜日まで): https://your-cloud-run-url
- 3週前から4週間分: https://your-cloud-run-url?weeks_back=3&weeks=4
- 臨時期間 (終了日指定): https://your-cloud-run-url?end_date=20240315
- プロダクト絞り込み: https://your-cloud-run-url?products=Fresca,SPM&measurement=bytes

環境変数:
- SPREADSHEET_ID: 設定されている場合、結果をスプレッドシートに書き込みます
- SPREADSHEET_RANGE: 書き込み先の範囲 (デフォルト: TopCpcodes!A2:B)
"""

import os
import traceback

from report_utils.date_windows import business_week_window, off_cycle_window
from report_utils.edgegrid_auth import EdgeGridTransport, get_account_switch_key
from report_utils.http_retry import ReportFetcher
from report_utils.sheets_upload import get_sheets_service, upload_rows
from reports.product_names import get_product_name
from reports.top_cpcodes import get_top_cpcodes


# ===================================================================
# 設定
# ===================================================================
DEFAULT_COUNT = 10
DEFAULT_SPREADSHEET_RANGE = "TopCpcodes!A2:B"


class InvalidRequestError(Exception):
    """リクエストのクエリパラメータが不正な場合のエラー (HTTP 400)。"""


def _int_arg(args, name, default, minimum=None):
    value = args.get(name)
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except ValueError:
        raise InvalidRequestError(f"{name} は整数で指定してください: {value!r}")
    if minimum is not None and number < minimum:
        raise InvalidRequestError(f"{name} は{minimum}以上を指定してください: {number}")
    return number


def parse_products(value):
    """カンマ区切りのプロダクトID / プロダクト名を、絞り込み用のプロダクト名に変換します。"""
    if not value:
        return set()
    names = set()
    for product in value.split(","):
        product = product.strip()
        if product:
            names.add(get_product_name(product) or product)
    return names


def resolve_window(args):
    end_date = args.get("end_date")
    weeks = _int_arg(args, "weeks", 1)
    try:
        if end_date:
            return off_cycle_window(end_date, weeks)
        return business_week_window(_int_arg(args, "weeks_back", 0), weeks)
    except ValueError as e:
        raise InvalidRequestError(str(e)) from e


def publish_to_sheet(top_cpcodes, spreadsheet_id, target_range, service=None):
    service = service or get_sheets_service()
    rows = [[rank, cpcode] for rank, cpcode in enumerate(top_cpcodes, start=1)]
    upload_rows(service, spreadsheet_id, "clear", target_range)
    return upload_rows(service, spreadsheet_id, "update", target_range, rows)


def run(args, fetcher=None):
    """
    上位CPコードレポートを実行します。

    処理フロー:
    1. レポート期間を計算 (end_date 指定時は臨時期間、それ以外は前週の金曜日まで)
    2. CPコード別データを取得し、上位N件を抽出
    3. SPREADSHEET_ID が設定されていればスプレッドシートに書き込み

    Returns:
        tuple: (top_cpcodes, attempts)

    Raises:
        InvalidRequestError: クエリパラメータが不正な場合 (データ取得前に判定)
    """
    print("\n=== Top CP Codes Report 処理開始 ===")

    window = resolve_window(args)
    count = _int_arg(args, "count", DEFAULT_COUNT, minimum=0)
    products = parse_products(args.get("products"))
    print(f"データ取得期間: {window.start_formatted} から {window.end_formatted}")

    fetcher = fetcher or ReportFetcher(EdgeGridTransport())
    top_cpcodes, attempts = get_top_cpcodes(
        fetcher,
        get_account_switch_key(),
        window,
        count=count,
        measurement=args.get("measurement", "hits"),
        level=args.get("level", "edge"),
        products=products,
    )

    for attempt in attempts:
        if not attempt.succeeded:
            print(f"  -> Warn: Attempt #{attempt.attempt_number} HTTP {attempt.http_status}: {attempt.error_message}")

    spreadsheet_id = os.environ.get("SPREADSHEET_ID")
    if spreadsheet_id:
        publish_to_sheet(
            top_cpcodes,
            spreadsheet_id,
            os.environ.get("SPREADSHEET_RANGE", DEFAULT_SPREADSHEET_RANGE)
        )

    print("\n=== Top CP Codes Report 処理完了 ===")
    return top_cpcodes, attempts


def main(request):
    """
    Cloud Run Functionsのメインエントリポイント

    Args:
        request: Flask request object

    Returns:
        tuple: (message, status_code)
    """
    print("=" * 60)
    print("Top CP Codes Report - 処理開始")
    print("=" * 60)

    try:
        top_cpcodes, _ = run(request.args)
        return (f"Top CP codes - OK ({len(top_cpcodes)})", 200)

    except InvalidRequestError as e:
        print(f"\nError: {e}")
        return (str(e), 400)

    except Exception as e:
        print(f"\nError: 致命的なエラーが発生しました: {e}")
        traceback.print_exc()
        return ("Internal Server Error", 500)


if __name__ == "__main__":
    # ローカルテスト用
    # functions-framework --target=main --signature-type=http --debug
    print("ローカルテスト実行")

    class MockRequest:
        def __init__(self, **args):
            self.args = args

    main(MockRequest())
