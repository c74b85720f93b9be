"""
Report Date Window Utility

レポート期間 (start / end) を計算するユーティリティです。
- 相対期間: 今日から N 日前までの期間
- 営業週期間: 月〜木に実行し、直近の金曜日で終わる前週分の期間
  (直近2日分のデータは確定していないため)
- 臨時期間: 終了日を明示的に指定するバックフィル用の期間

すべての日時は UTC の午前0時に揃えます。
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone


# ===================================================================
# 設定
# ===================================================================
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
FRIDAY = 5  # 日曜日 = 0 ... 土曜日 = 6


@dataclass(frozen=True)
class DateWindow:
    """レポート期間。start / end はどちらも UTC 午前0時。"""

    start: datetime
    end: datetime
    end_date: date = field(init=False)

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"start ({self.start}) は end ({self.end}) より前である必要があります。")
        object.__setattr__(self, "end_date", self.end.date())

    @property
    def start_formatted(self):
        return format_timestamp(self.start)

    @property
    def end_formatted(self):
        return format_timestamp(self.end)


def format_timestamp(value):
    """
    API に送る形式 (YYYY-MM-DDTHH:MM:SSZ) に変換します。
    秒未満は四捨五入せず切り捨てます。
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def _utc_now(now):
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _midnight(value):
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _sunday_based_weekday(value):
    return value.isoweekday() % 7


def relative_window(end_offset_days=0, days_prior=1, now=None):
    """
    今日を基準にした相対期間を計算します。

    Args:
        end_offset_days: 終了日を今日から何日前にするか (0 = 今日の午前0時まで)
        days_prior: 終了日から何日前までを含めるか
        now: 基準となる現在時刻 (テスト用、省略時は現在の UTC 時刻)

    Returns:
        DateWindow
    """
    if end_offset_days < 0 or days_prior < 1:
        raise ValueError("end_offset_days は0以上、days_prior は1以上を指定してください。")

    today = _utc_now(now)
    end = _midnight(today - timedelta(days=end_offset_days))
    start = _midnight(today - timedelta(days=end_offset_days + days_prior))
    return DateWindow(start=start, end=end)


def business_week_window(weeks_back=0, weeks=1, now=None):
    """
    直近の金曜日で終わる週単位の期間を計算します。

    レポートは月〜木の朝に前週分 (前週の金曜日まで) を対象に実行します。
    金〜日に実行した場合は、さらに1週間前の金曜日を終了日とします。

    Args:
        weeks_back: 何週前の期間を取得するか (0 = 直近の週。新規ダッシュボードの過去データ投入用)
        weeks: 終了日から何週間分を含めるか
        now: 基準となる現在時刻 (テスト用)

    Returns:
        DateWindow
    """
    if weeks_back < 0 or weeks < 1:
        raise ValueError("weeks_back は0以上、weeks は1以上を指定してください。")

    end = _utc_now(now)
    if weeks_back > 0:
        end -= timedelta(days=7 * weeks_back)

    # 月〜木以外なら前の週へ
    weekday = _sunday_based_weekday(end)
    if weekday < 1 or weekday > 4:
        end -= timedelta(days=7)

    # 直近の金曜日 (当日を含む) まで戻す
    end -= timedelta(days=(_sunday_based_weekday(end) + 7 - FRIDAY) % 7)
    end = _midnight(end)

    start = _midnight(end - timedelta(days=7 * weeks))
    return DateWindow(start=start, end=end)


def off_cycle_window(end_date, weeks=1):
    """
    終了日を明示的に指定した期間を計算します (金曜日への補正なし)。

    Args:
        end_date: 終了日 ("YYYYMMDD" または "YYYY-MM-DD")
        weeks: 終了日から何週間分を含めるか

    Returns:
        DateWindow
    """
    if weeks < 1:
        raise ValueError("weeks は1以上を指定してください。")

    try:
        parsed = datetime.strptime(end_date.replace("-", ""), "%Y%m%d")
    except (AttributeError, ValueError) as e:
        raise ValueError(f"終了日の形式が不正です (YYYYMMDD): {end_date!r}") from e

    end = parsed.replace(tzinfo=timezone.utc)
    start = end - timedelta(days=7 * weeks)
    return DateWindow(start=start, end=end)
