"""Tests for the Google Sheets uploader with a mocked Sheets service."""
import socket
from unittest.mock import MagicMock

import httplib2
import pytest
from google.auth.exceptions import TransportError
from googleapiclient.errors import HttpError

from report_utils.http_retry import RetryPolicy
from report_utils.sheets_upload import SheetsUploadError, upload_rows


def http_error(status):
    return HttpError(httplib2.Response({"status": status}), b"rate limited")


def make_service(*side_effects):
    service = MagicMock()
    values = service.spreadsheets.return_value.values.return_value
    request = MagicMock()
    request.execute.side_effect = list(side_effects) if side_effects else None
    values.clear.return_value = request
    values.update.return_value = request
    values.append.return_value = request
    return service, values, request


def test_update_writes_rows():
    service, values, _ = make_service()
    rows = [[1, "12345"], [2, "67890"]]

    status, elapsed_ms, attempts = upload_rows(service, "sheet-id", "update", "Top!A2:B", rows,
                                               sleep=lambda s: None)

    assert status == 200
    assert elapsed_ms >= 0
    assert len(attempts) == 1
    values.update.assert_called_once_with(
        spreadsheetId="sheet-id",
        range="Top!A2:B",
        valueInputOption="USER_ENTERED",
        body={"values": rows},
    )


def test_clear_and_append_operations():
    service, values, _ = make_service()

    upload_rows(service, "sheet-id", "clear", "Top!A2:B", sleep=lambda s: None)
    upload_rows(service, "sheet-id", "append", "Top!A2:B", [[1, "x"]], sleep=lambda s: None)

    values.clear.assert_called_once_with(spreadsheetId="sheet-id", range="Top!A2:B", body={})
    assert values.append.call_args.kwargs["body"] == {"values": [[1, "x"]]}


def test_retries_with_fixed_thirty_second_delay():
    sleeps = []
    service, _, request = make_service(http_error(429), http_error(503), {})

    status, _, attempts = upload_rows(service, "sheet-id", "update", "Top!A2:B", [[1]], sleep=sleeps.append)

    assert status == 200
    assert [a.http_status for a in attempts] == [429, 503, 200]
    assert sleeps == [30, 30]
    assert request.execute.call_count == 3


def test_exhaustion_raises_with_attempt_log():
    sleeps = []
    service, _, _ = make_service(*[http_error(500)] * 3)

    with pytest.raises(SheetsUploadError) as excinfo:
        upload_rows(service, "sheet-id", "update", "Top!A2:B", [[1]],
                    policy=RetryPolicy(max_attempts=3, delay_seconds=30), sleep=sleeps.append)

    assert len(excinfo.value.attempts) == 3
    assert sleeps == [30, 30]


def test_unknown_operation_rejected():
    service, _, request = make_service()

    with pytest.raises(ValueError):
        upload_rows(service, "sheet-id", "delete", "Top!A2:B")

    request.execute.assert_not_called()


def test_connection_errors_are_retried():
    sleeps = []
    service, _, request = make_service(socket.timeout("timed out"), TransportError("token refresh failed"), {})

    status, _, attempts = upload_rows(service, "sheet-id", "append", "Top!A2:B", [[1]], sleep=sleeps.append)

    assert status == 200
    assert [a.http_status for a in attempts] == [None, None, 200]
    assert attempts[0].error_message.endswith("timed out")
    assert attempts[1].error_message == "TransportError: token refresh failed"
    assert sleeps == [30, 30]
    assert request.execute.call_count == 3
