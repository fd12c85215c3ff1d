"""
Tests for Test Case Listener
"""

from datetime import datetime

import pytest

from utils.http_client import Response
from utils.test_case_listener import (
    FOUR_XX, TWO_XX, ExecutionStatistics, ResponseCodeFamily, ResultKind, TestCase, TestCaseListener
)


def make_response(status_code, text="{}"):
    return Response(
        status_code=status_code,
        headers={"content-type": "application/json"},
        content=text.encode(),
        text=text,
        url="http://localhost:8080/pets",
        elapsed=0.01,
        request_method="POST"
    )


class TestResponseCodeFamily:
    """Test response code matching"""

    def test_family_matches(self):
        assert FOUR_XX.matches(400)
        assert FOUR_XX.matches(422)
        assert not FOUR_XX.matches(500)
        assert not TWO_XX.matches(0)

    def test_exact_code_matches(self):
        family = ResponseCodeFamily.parse("405")

        assert not family.is_family
        assert family.matches(405)
        assert not family.matches(404)

    @pytest.mark.parametrize("value,label", [("2xx", "2XX"), (400, "400"), (" 5XX ", "5XX")])
    def test_parse(self, value, label):
        assert ResponseCodeFamily.parse(value).label == label

    @pytest.mark.parametrize("value", ["", "4X", "abc", "4XY", "1000", "X00"])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            ResponseCodeFamily.parse(value)


class TestExecutionStatistics:
    def test_record_counts(self):
        statistics = ExecutionStatistics()
        for kind in (ResultKind.SUCCESS, ResultKind.SUCCESS, ResultKind.WARN,
                     ResultKind.ERROR, ResultKind.SKIPPED):
            statistics.record(kind)

        assert statistics.success == 2
        assert statistics.warns == 1
        assert statistics.errors == 1
        assert statistics.skipped == 1
        assert statistics.all == 4


class TestTestCaseListener:
    """Test response classification"""

    def setup_method(self):
        self.listener = TestCaseListener()

    def create(self, expected=FOUR_XX):
        return self.listener.create_test_case(
            fuzzer="NullValuesInFieldsFuzzer",
            path="/pets",
            method="POST",
            scenario="Send [REPLACE] in field [name]",
            expected=expected,
            field_name="name",
            strategy="REPLACE"
        )

    def test_test_case_ids_are_sequential(self):
        first = self.create()
        second = self.create()

        assert second.id == first.id + 1
        assert self.listener.test_cases == [first, second]

    def test_expected_and_documented_is_success(self):
        test_case = self.create()

        kind = self.listener.report_result(test_case, make_response(400), documented_codes=["201", "400"])

        assert kind is ResultKind.SUCCESS
        assert test_case.result is ResultKind.SUCCESS
        assert test_case.status_code == 400
        assert self.listener.statistics.success == 1

    def test_expected_but_undocumented_is_warn(self):
        test_case = self.create()

        kind = self.listener.report_result(test_case, make_response(422), documented_codes=["201", "400"])

        assert kind is ResultKind.WARN
        assert "not documented" in test_case.result_reason

    def test_family_and_default_codes_document_responses(self):
        assert self.listener.report_result(self.create(), make_response(422), documented_codes=["4XX"]) \
            is ResultKind.SUCCESS
        assert self.listener.report_result(self.create(), make_response(409), documented_codes=["default"]) \
            is ResultKind.SUCCESS

    def test_unexpected_code_is_error(self):
        test_case = self.create()

        kind = self.listener.report_result(test_case, make_response(201), documented_codes=["201"])

        assert kind is ResultKind.ERROR
        assert "expected 4XX" in test_case.result_reason

    def test_documentation_check_can_be_disabled(self):
        test_case = self.create(expected=ResponseCodeFamily("405"))

        assert self.listener.report_result(test_case, make_response(405)) is ResultKind.SUCCESS

    def test_connection_error_is_error(self):
        test_case = self.create()

        kind = self.listener.report_result(test_case, make_response(0, "Connection refused"))

        assert kind is ResultKind.ERROR
        assert test_case.result_reason == "Request failed: Connection refused"

    def test_long_payload_is_accepted(self):
        test_case = self.create()

        kind = self.listener.report_result(test_case, make_response(500), payload="x" * 5000)

        assert kind is ResultKind.ERROR

    def test_skip(self):
        test_case = self.create()

        kind = self.listener.skip(test_case, "No left boundary defined")

        assert kind is ResultKind.SKIPPED
        assert test_case.result_reason == "No left boundary defined"
        assert self.listener.statistics.skipped == 1
        assert self.listener.statistics.all == 0

    def test_summary_line(self):
        self.listener.start_session()
        self.listener.report_result(self.create(), make_response(400), documented_codes=["400"])
        self.listener.report_result(self.create(), make_response(422), documented_codes=["400"])
        self.listener.report_result(self.create(), make_response(200), documented_codes=["400"])
        self.listener.skip(self.create(), "reason")

        summary = self.listener.summary_line()

        assert summary.startswith("Finished in ")
        assert "Total (excluding skipped) requests 3." in summary
        assert "Passed: 1, warnings: 1, errors: 1, skipped: 1." in summary

    def test_elapsed_before_start(self):
        assert self.listener.elapsed_ms() == 0

    def test_sessions_do_not_share_statistics(self):
        self.listener.skip(self.create(), "reason")

        assert TestCaseListener().statistics.skipped == 0


def test_test_case_defaults():
    before = datetime.now()

    test_case = TestCase(id=1, fuzzer="HappyFuzzer", path="/pets", method="GET",
                         scenario="Send a happy flow request", expected=TWO_XX)

    assert test_case.field_name is None
    assert test_case.result is None
    assert before <= test_case.timestamp <= datetime.now()


def test_created_test_case_keeps_the_field_name():
    listener = TestCaseListener()

    test_case = listener.create_test_case(fuzzer="NullValuesInFieldsFuzzer", path="/pets", method="POST",
                                          scenario="Send [REPLACE] in field [owner#name]",
                                          expected=FOUR_XX, field_name="owner#name")

    assert test_case.field_name == "owner#name"
    assert isinstance(test_case.timestamp, datetime)
