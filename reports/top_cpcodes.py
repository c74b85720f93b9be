"""
Top CP Codes Report

このモジュールは、アカウント全体のCPコード別のヒット数 / バイト数を取得し、
上位N件のCPコードを返します。
- プロダクト指定がある場合は、CPコードの最初のプロダクト名で絞り込み
- 値の大きい順に並べ、同値の場合は取得時の順序を保持
"""

from dataclasses import dataclass

from report_utils.http_retry import AttemptRecord
from report_utils.request_builder import Interval, ReportRequestSpec


# ===================================================================
# 設定
# ===================================================================
REPORT_PATHS = {
    "hits": "/reporting-api/v1/reports/hits-by-cpcode/versions/1/report-data",
    "bytes": "/reporting-api/v1/reports/bytes-by-cpcode/versions/1/report-data",
}
METRICS = {
    ("hits", "edge"): "edgeHits",
    ("hits", "origin"): "originHits",
    ("bytes", "edge"): "edgeBytes",
    ("bytes", "origin"): "originBytes",
}
CPCODES_PATH = "/cprg/v1/cpcodes"
CPCODE_FIELD = "cpcode"
CPCODE_ID_FIELD = "cpcodeId"


@dataclass(frozen=True)
class CpcodeRankEntry:
    cpcode: str
    value: float


def _metric_value(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _first_product_name(details):
    if not isinstance(details, dict):
        return None
    products = details.get("products") or []
    if not products or not isinstance(products[0], dict):
        return None
    return products[0].get("productName")


def _filter_by_products(entries, cpcode_details, products):
    # CPコードの型 (数値 / 文字列) がAPIごとに異なるため文字列に揃えて突き合わせる
    details_by_id = {str(key): value for key, value in (cpcode_details or {}).items()}
    return [
        entry for entry in entries
        if _first_product_name(details_by_id.get(entry.cpcode)) in products
    ]


def rank_cpcodes(entries, count):
    """値の降順に並べ (同値は元の順序を保持)、先頭 count 件のCPコードを返します。"""
    ranked = sorted(entries, key=lambda entry: entry.value, reverse=True)
    return [entry.cpcode for entry in ranked[:count]]


def get_top_cpcodes(fetcher, account_switch_key, window, count=10, measurement="hits",
                    level="edge", products=None):
    """
    上位N件のCPコードを取得します。

    Args:
        fetcher: ReportFetcher
        account_switch_key: アカウントスコープキー (不明な場合は '')
        window: DateWindow
        count: 返すCPコードの件数
        measurement: 'hits' / 'bytes'
        level: 'edge' / 'origin'
        products: 絞り込むプロダクト名 (例: {'Ion Standard'})、空の場合は絞り込みなし

    Returns:
        tuple: (top_cpcodes, attempts)

    Raises:
        ValueError: count が負の場合
    """
    products = set(products or [])
    if count < 0:
        raise ValueError(f"count は0以上を指定してください: {count}")

    if measurement not in REPORT_PATHS:
        print(f"  -> Error: 不正な measurement です: {measurement}")
        return [], [AttemptRecord(0, 400, 0, "Bad Request: Invalid measurement value", length=0)]

    metric = METRICS[(measurement, "edge" if level == "edge" else "origin")]

    by_cpcode, attempts = fetcher.fetch(ReportRequestSpec(
        path=REPORT_PATHS[measurement],
        method="POST",
        account_switch_key=account_switch_key,
        window=window,
        interval=Interval.HOUR,
        body={"objectIds": "all", "metrics": [metric]},
        data_property="data",
    ))
    if not by_cpcode:
        print(f"  -> Warn: CPコード別データを取得できませんでした ({measurement})")
        return [], attempts

    entries = [
        CpcodeRankEntry(str(item[CPCODE_FIELD]), _metric_value(item.get(metric)))
        for item in by_cpcode
        if isinstance(item, dict) and CPCODE_FIELD in item
    ]

    if products:
        cpcode_details, details_attempts = fetcher.fetch(ReportRequestSpec(
            path=CPCODES_PATH,
            method="GET",
            account_switch_key=account_switch_key,
            body={},
            data_property="cpcodes",
            array_to_object=True,
            object_key=CPCODE_ID_FIELD,
        ))
        attempts = attempts + details_attempts
        entries = _filter_by_products(entries, cpcode_details, products)
        print(f"-> プロダクトで絞り込み: {len(entries)}件 ({', '.join(sorted(products))})")

    top_cpcodes = rank_cpcodes(entries, count)
    print(f"-> 上位CPコード ({metric}): {top_cpcodes}")
    return top_cpcodes, attempts
