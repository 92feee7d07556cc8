from decimal import Decimal

import pytest

from core.errors import InsufficientDepth, InvalidSnapshot
from exchange.orderbook import BookSide, DepthBook, DepthLevel


def _book():
    return DepthBook.from_levels(
        bids=[("2010", "3"), ("2000", "2"), ("1990", "10")],
        asks=[("1995", "5"), ("2001", "10"), ("2010", "20")],
    )


class TestConstruction:
    def test_from_levels_sorts_merges_and_drops_empty(self):
        book = DepthBook.from_levels(
            bids=[(1990.5, 1.0), (1991, 2), (1990.5, "0.5"), (1980, 0)],
            asks=[("2001", "1"), ("1995", "2")],
        )
        assert [level.price for level in book.bids] == [Decimal("1991"), Decimal("1990.5")]
        assert book.bids[1].quantity == Decimal("1.5")
        assert [level.price for level in book.asks] == [Decimal("1995"), Decimal("2001")]

    def test_unsorted_asks_are_invalid(self):
        with pytest.raises(InvalidSnapshot):
            DepthBook(
                bids=(),
                asks=(
                    DepthLevel(Decimal("2001"), Decimal("1")),
                    DepthLevel(Decimal("1995"), Decimal("1")),
                ),
            )

    def test_unsorted_bids_are_invalid(self):
        with pytest.raises(InvalidSnapshot):
            DepthBook(
                bids=(
                    DepthLevel(Decimal("1990"), Decimal("1")),
                    DepthLevel(Decimal("1991"), Decimal("1")),
                ),
                asks=(),
            )

    def test_level_rejects_bad_values(self):
        with pytest.raises(InvalidSnapshot):
            DepthLevel(Decimal("0"), Decimal("1"))
        with pytest.raises(InvalidSnapshot):
            DepthLevel(Decimal("1"), Decimal("-1"))
        with pytest.raises(TypeError):
            DepthLevel(1.0, Decimal("1"))

    def test_best_levels(self):
        book = _book()
        assert book.best_bid.price == Decimal("2010")
        assert book.best_ask.price == Decimal("1995")

    def test_side_total(self):
        book = _book()
        assert book.side_total(BookSide.ASK) == Decimal("35")
        assert book.side_total(BookSide.BID, value_in_quote=True) == Decimal("29930")


class TestAccumulateUntil:
    def test_asks_in_base(self):
        total, levels = _book().accumulate_until(BookSide.ASK, Decimal("1999"))
        assert (total, levels) == (Decimal("5"), 1)

    def test_level_at_limit_is_included(self):
        total, levels = _book().accumulate_until(BookSide.ASK, Decimal("2001"))
        assert (total, levels) == (Decimal("15"), 2)

    def test_asks_in_quote(self):
        total, levels = _book().accumulate_until(
            BookSide.ASK, Decimal("1999"), value_in_quote=True
        )
        assert (total, levels) == (Decimal("9975"), 1)

    def test_bids(self):
        book = _book()
        assert book.accumulate_until(BookSide.BID, Decimal("2000")) == (Decimal("5"), 2)
        assert book.accumulate_until(
            BookSide.BID, Decimal("2000"), value_in_quote=True
        ) == (Decimal("10030"), 2)

    def test_first_level_already_crossed(self):
        assert _book().accumulate_until(BookSide.ASK, Decimal("1990")) == (Decimal("0"), 0)

    def test_total_never_exceeds_side(self):
        book = _book()
        for limit in ("1995", "2000", "2005", "2009.99"):
            total, levels = book.accumulate_until(BookSide.ASK, Decimal(limit))
            assert total <= book.side_total(BookSide.ASK)
            assert levels <= len(book.asks)

    def test_exhausted_side_raises_insufficient_depth(self):
        with pytest.raises(InsufficientDepth) as exc:
            _book().accumulate_until(BookSide.ASK, Decimal("5000"))
        assert exc.value.available == Decimal("35")

    def test_empty_side_is_invalid(self):
        book = DepthBook.from_levels(bids=[], asks=[("1995", "1")])
        with pytest.raises(InvalidSnapshot):
            book.accumulate_until(BookSide.BID, Decimal("2000"))


class TestFill:
    def test_spend_quote_across_levels(self):
        received = _book().fill(BookSide.ASK, Decimal("13977"), amount_in_quote=True)
        assert received == Decimal("7")

    def test_partial_level(self):
        received = _book().fill(BookSide.ASK, Decimal("997.5"), amount_in_quote=True)
        assert received == Decimal("0.5")

    def test_sell_base_into_bids(self):
        received = _book().fill(BookSide.BID, Decimal("4"), amount_in_quote=False)
        assert received == Decimal("8030")

    def test_zero_amount(self):
        assert _book().fill(BookSide.BID, Decimal("0"), amount_in_quote=False) == 0

    def test_exhausted_side_raises_insufficient_depth(self):
        with pytest.raises(InsufficientDepth) as exc:
            _book().fill(BookSide.BID, Decimal("16"), amount_in_quote=False)
        assert exc.value.requested == Decimal("16")
        assert exc.value.available == Decimal("15")

    def test_negative_amount(self):
        with pytest.raises(ValueError):
            _book().fill(BookSide.ASK, Decimal("-1"), amount_in_quote=True)
