"""Tests for the report orchestrator entry point."""
from unittest.mock import patch

from conftest import FakeTransport, ok
import main


class MockRequest:
    def __init__(self, **args):
        self.args = args


def test_parse_products_translates_ids():
    assert main.parse_products("Fresca, SPM,Custom Product") == {"Ion Standard", "Ion Premier", "Custom Product"}
    assert main.parse_products("") == set()


def test_resolve_window_prefers_end_date():
    window = main.resolve_window({"end_date": "20240313", "weeks": "2", "weeks_back": "5"})

    assert window.end_formatted == "2024-03-13T00:00:00Z"
    assert window.start_formatted == "2024-02-28T00:00:00Z"


def test_resolve_window_defaults_to_business_week():
    window = main.resolve_window({})

    assert window.end.isoweekday() == 5


def test_run_ranks_and_publishes(make_fetcher, monkeypatch):
    monkeypatch.setenv("SPREADSHEET_ID", "sheet-id")
    monkeypatch.setenv("ACCOUNT_SWITCH_KEY", "1-ABC")
    transport = FakeTransport(ok({"data": [
        {"cpcode": "100", "edgeHits": 1},
        {"cpcode": "200", "edgeHits": 5},
    ]}))

    with patch.object(main, "publish_to_sheet") as publish:
        top, attempts = main.run({"end_date": "20240313", "count": "1"}, fetcher=make_fetcher(transport))

    assert top == ["200"]
    assert len(attempts) == 1
    assert "accountSwitchKey=1-ABC" in transport.calls[0].uri
    publish.assert_called_once_with(["200"], "sheet-id", "TopCpcodes!A2:B")


def test_publish_to_sheet_clears_then_updates():
    with patch.object(main, "upload_rows", return_value=(200, 5, [])) as upload:
        main.publish_to_sheet(["9", "8"], "sheet-id", "Top!A2:B", service="svc")

    assert upload.call_args_list[0].args == ("svc", "sheet-id", "clear", "Top!A2:B")
    assert upload.call_args_list[1].args == ("svc", "sheet-id", "update", "Top!A2:B", [[1, "9"], [2, "8"]])


def test_main_bad_argument_returns_400():
    message, status = main.main(MockRequest(count="ten"))

    assert status == 400
    assert "count" in message


def test_main_success(monkeypatch):
    monkeypatch.delenv("SPREADSHEET_ID", raising=False)
    with patch.object(main, "run", return_value=(["1", "2"], [])):
        message, status = main.main(MockRequest())

    assert status == 200
    assert message == "Top CP codes - OK (2)"


def test_main_unexpected_error_returns_500():
    with patch.object(main, "run", side_effect=RuntimeError("boom")):
        message, status = main.main(MockRequest())

    assert (message, status) == ("Internal Server Error", 500)


def test_main_negative_count_returns_400_without_fetch():
    with patch.object(main, "EdgeGridTransport") as transport_cls:
        message, status = main.main(MockRequest(count="-1"))

    assert status == 400
    assert "count" in message
    transport_cls.assert_not_called()


def test_main_bad_end_date_returns_400():
    message, status = main.main(MockRequest(end_date="2024/13/45"))

    assert status == 400


def test_main_missing_sheets_credentials_returns_500(make_fetcher, monkeypatch):
    monkeypatch.setenv("SPREADSHEET_ID", "sheet-id")
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
    fetcher = make_fetcher(FakeTransport(ok({"data": [{"cpcode": "1", "edgeHits": 1}]})))

    with patch.object(main, "ReportFetcher", return_value=fetcher), \
            patch.object(main, "EdgeGridTransport"):
        message, status = main.main(MockRequest())

    assert (message, status) == ("Internal Server Error", 500)


def test_main_missing_edgerc_returns_500(monkeypatch, tmp_path):
    monkeypatch.setenv("EDGERC_PATH", str(tmp_path / "missing.edgerc"))

    message, status = main.main(MockRequest())

    assert status == 500
