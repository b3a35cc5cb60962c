"""Tests for the rich text renderers."""

from __future__ import annotations

import io
import random
from datetime import date

from rich.console import Console

from siteboard import render
from siteboard.config import BUNDLED_DATA_DIR
from siteboard.constraints import constraint_gantt
from siteboard.staffing import staffing_gantt
from siteboard.store import DashboardStore

TODAY = date(2026, 10, 19)


def _text(renderable) -> str:
    console = Console(file=io.StringIO(), width=160, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestTextBar:
    def test_half_width_bar(self):
        assert render.text_bar(0, 50, columns=10) == "█████·····"

    def test_bar_clipped_at_right_edge(self):
        assert render.text_bar(90, 50, columns=10) == "·········█"

    def test_minimum_one_cell(self):
        assert render.text_bar(40, 0.1, columns=10).count("█") == 1

    def test_today_marker(self):
        assert render.text_bar(0, 10, columns=10, today=50) == "█····│····"

    def test_marker_does_not_hide_bar(self):
        assert render.text_bar(0, 100, columns=10, today=50) == "█" * 10


def test_staffing_gantt_table():
    store = DashboardStore(BUNDLED_DATA_DIR, today_fn=lambda: TODAY)
    view = staffing_gantt(store.staff_members, store.projects, 2525801, today=TODAY, rng=random.Random(1))
    text = _text(render.render_staffing_gantt(view))
    assert "Palm Beach Luxury Estate" in text
    assert "Sarah Mitchell" in text
    assert "%" in text


def test_constraint_views():
    store = DashboardStore(BUNDLED_DATA_DIR, today_fn=lambda: TODAY)
    text = _text(render.render_constraints(store.constraints[:2]))
    assert "C-1" in text
    assert "Aug 04, 2026" in text
    assert "C-2" in _text(render.render_constraint_gantt(constraint_gantt(store.constraints, today=TODAY)))


def test_empty_constraints_message():
    assert "No constraints match" in _text(render.render_constraints([]))


def test_notice_panel():
    notice = {"title": "Export Failed", "description": "There was an error exporting the data", "variant": "destructive"}
    text = _text(render.render_notice(notice, detail="disk full"))
    assert "Export Failed" in text
    assert "disk full" in text
