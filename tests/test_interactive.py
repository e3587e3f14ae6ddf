"""Tests for facsched.interactive module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from facsched.data.models import Faculty, ScheduleView
from facsched.interactive import (
    DISPATCH,
    MAIN_MENU_CHOICES,
    browse_department_flow,
    interactive_menu,
    known_departments,
    list_departments_flow,
    refresh_flow,
    show_main_menu,
    status_flow,
)
from facsched.pipeline.data_init import InitOutcome


@pytest.fixture()
def ctx() -> MagicMock:
    """AppContext stand-in with two departments of faculty."""
    ctx = MagicMock()
    ctx.services.faculty.get_all.return_value = [
        Faculty(faculty_id="F2", name="Alan Turing", department="Computer Science"),
        Faculty(faculty_id="F1", name="Ada Lovelace", department="Mathematics"),
        Faculty(faculty_id="F3", name="Grace Hopper", department="Computer Science"),
    ]
    ctx.cache.snapshot.return_value = {"faculty_data": 3, "rooms_data": None}
    return ctx


# ======================================================================
# Test: main menu display and choice
# ======================================================================


class TestShowMainMenu:
    @patch("facsched.interactive.Prompt.ask", return_value="1")
    @patch("facsched.interactive.console")
    def test_returns_user_choice(self, _mock_console, mock_ask) -> None:
        assert show_main_menu() == "1"
        assert mock_ask.call_args.kwargs["choices"] == list(MAIN_MENU_CHOICES)

    def test_all_dispatch_keys_in_menu(self) -> None:
        for key in DISPATCH:
            assert key in MAIN_MENU_CHOICES
        assert "5" not in DISPATCH


class TestInteractiveMenu:
    """Test the main menu loop dispatches correctly and exits."""

    @patch("facsched.interactive.build_app_context")
    @patch("facsched.interactive.show_main_menu", return_value="5")
    @patch("facsched.interactive.console")
    def test_initializes_then_exits(self, _mock_console, _mock_menu, mock_build, ctx) -> None:
        mock_build.return_value = ctx
        assert interactive_menu() == 0
        ctx.initializer.initialize_app_data.assert_called_once()
        ctx.close.assert_called_once()

    @patch("facsched.interactive.build_app_context")
    @patch("facsched.interactive.show_main_menu", side_effect=["3", "1", "5"])
    @patch("facsched.interactive.console")
    def test_dispatches_then_exits(self, _mock_console, _mock_menu, mock_build, ctx) -> None:
        mock_build.return_value = ctx
        status, browse = MagicMock(), MagicMock()
        with patch.dict("facsched.interactive.DISPATCH", {"3": status, "1": browse}):
            assert interactive_menu() == 0
        status.assert_called_once_with(ctx)
        browse.assert_called_once_with(ctx)

    @patch("facsched.interactive.build_app_context")
    @patch("facsched.interactive.show_main_menu", return_value="5")
    @patch("facsched.interactive.console")
    def test_initialization_failure_keeps_menu(self, mock_console, _mock_menu, mock_build, ctx) -> None:
        ctx.initializer.initialize_app_data.side_effect = requests.ConnectionError("down")
        mock_build.return_value = ctx

        assert interactive_menu() == 0
        printed = " ".join(str(c.args[0]) for c in mock_console.print.call_args_list if c.args)
        assert "Could not initialize data" in printed


class TestFlows:
    def test_known_departments_sorted_unique(self, ctx) -> None:
        assert known_departments(ctx) == ["Computer Science", "Mathematics"]

    @patch("facsched.interactive.console")
    def test_list_departments(self, mock_console, ctx) -> None:
        list_departments_flow(ctx)
        printed = [str(c.args[0]) for c in mock_console.print.call_args_list if c.args]
        assert "  - Computer Science" in printed
        assert "  - Mathematics" in printed

    @patch("facsched.interactive.Prompt.ask", return_value="Mathematics")
    @patch("facsched.interactive.console")
    def test_browse_department(self, mock_console, mock_ask, ctx) -> None:
        ctx.services.schedules.get_schedule_view_by_department.return_value = [
            ScheduleView(schedule_id="1", faculty_name="Ada Lovelace", faculty_id="F1",
                         department="Mathematics", day_of_week="Monday")
        ]
        browse_department_flow(ctx)

        assert mock_ask.call_args.kwargs["choices"] == ["Computer Science", "Mathematics"]
        ctx.services.schedules.get_schedule_view_by_department.assert_called_once_with("Mathematics")
        table = mock_console.print.call_args_list[-1].args[0]
        assert table.row_count == 1

    @patch("facsched.interactive.Prompt.ask", return_value="Physics")
    @patch("facsched.interactive.console")
    def test_browse_free_text_when_faculty_unavailable(self, mock_console, mock_ask, ctx) -> None:
        ctx.services.faculty.get_all.side_effect = requests.ConnectionError("down")
        ctx.services.schedules.get_schedule_view_by_department.return_value = []

        browse_department_flow(ctx)

        assert "choices" not in mock_ask.call_args.kwargs
        printed = str(mock_console.print.call_args_list[-1].args[0])
        assert "No classes scheduled for Physics" in printed

    @patch("facsched.interactive.Prompt.ask", return_value="Mathematics")
    @patch("facsched.interactive.console")
    def test_browse_load_error(self, mock_console, _mock_ask, ctx) -> None:
        ctx.services.schedules.get_schedule_view_by_department.side_effect = (
            requests.ConnectionError("down")
        )
        browse_department_flow(ctx)
        assert "Could not load schedule" in str(mock_console.print.call_args_list[-1].args[0])

    @patch("facsched.interactive.console")
    def test_status(self, mock_console, ctx) -> None:
        ctx.freshness.is_expired.return_value = False
        status_flow(ctx)
        printed = [str(c.args[0]) for c in mock_console.print.call_args_list if c.args]
        assert any("Cache is fresh" in p for p in printed)
        table = mock_console.print.call_args_list[-1].args[0]
        assert table.row_count == 2

    @patch("facsched.interactive.console")
    def test_refresh_reports_source(self, mock_console, ctx) -> None:
        ctx.initializer.refresh_all_data.return_value = InitOutcome.STATIC
        refresh_flow(ctx)
        assert "static" in str(mock_console.print.call_args_list[-1].args[0])

    @patch("facsched.interactive.console")
    def test_refresh_failure(self, mock_console, ctx) -> None:
        ctx.initializer.refresh_all_data.side_effect = requests.HTTPError("500")
        refresh_flow(ctx)
        assert "Refresh failed" in str(mock_console.print.call_args_list[-1].args[0])
