"""Tests for the console terminal, checked through a VT100 emulator."""
from tests.screen import ScreenBuffer


class TestConsoleTerminal:
    """The escape sequences behave the way the renderer assumes."""

    def test_write_advances_cursor(self):
        screen = ScreenBuffer(10, 3)
        screen.write("abc")
        assert screen.cursor == (3, 0)
        assert screen.line(0) == "abc"

    def test_newline_returns_carriage(self):
        screen = ScreenBuffer(10, 3)
        screen.write("ab\ncd")
        assert screen.lines() == ["ab", "cd", ""]
        assert screen.cursor == (2, 1)

    def test_line_feed_scrolls_at_bottom(self):
        screen = ScreenBuffer(10, 2)
        screen.write("one\ntwo\nthree")
        assert screen.lines() == ["two", "three"]

    def test_full_row_then_newline_is_one_line_feed(self):
        screen = ScreenBuffer(4, 3)
        screen.write("abcd\nef")
        assert screen.lines() == ["abcd", "ef", ""]

    def test_moves_are_clamped(self):
        screen = ScreenBuffer(10, 3)
        screen.move_cursor(-5, -5)
        assert screen.cursor == (0, 0)
        screen.cursor_to(50, 50)
        assert screen.cursor == (9, 2)

    def test_relative_moves(self):
        screen = ScreenBuffer(10, 5)
        screen.cursor_to(2, 2)
        screen.move_cursor(3, -1)
        assert screen.cursor == (5, 1)
        screen.move_cursor(-1, 2)
        assert screen.cursor == (4, 3)

    def test_column_only_move_keeps_row(self):
        screen = ScreenBuffer(10, 3)
        screen.write("abcdef")
        screen.cursor_to(0)
        assert screen.cursor == (0, 0)
        screen.cursor_to(4)
        assert screen.cursor == (4, 0)

    def test_clear_screen_down(self):
        screen = ScreenBuffer(10, 3)
        screen.write("aaaa\nbbbb\ncccc")
        screen.cursor_to(2, 1)
        screen.clear_screen_down()
        assert screen.lines() == ["aaaa", "bb", ""]

    def test_clear_all(self):
        screen = ScreenBuffer(10, 2)
        screen.write("a\nb")
        screen.clear_all()
        assert screen.lines() == ["", ""]

    def test_styles_reach_the_screen(self):
        screen = ScreenBuffer(10, 2)
        screen.write("ab", "incoming")
        screen.write("cd")
        assert screen.style_at(0, 0) == "green"
        assert screen.style_at(2, 0) == "default"

    def test_resize_updates_reported_size(self):
        screen = ScreenBuffer(10, 3)
        screen.resize(40, 12)
        assert (screen.columns, screen.rows) == (40, 12)
