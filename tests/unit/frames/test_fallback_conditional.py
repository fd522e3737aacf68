"""Tests for FallbackFrame and ConditionalFrame."""

import pytest

from cadence.errors import ConditionFailedError, FrameCancelledError, UserError
from cadence.frames import ConditionalFrame, FallbackFrame, FrameOutcome, FunctionFrame
from cadence.hooks.events import OnFallback, OnFalseyValue, OnTruthyValue


def failing(ctx) -> None:
    raise RuntimeError("primary down")


class TestFallbackFrame:
    """Tests for primary/secondary semantics."""

    async def test_primary_success_skips_secondary(self, make_context, recorder) -> None:
        """Secondary never runs when primary succeeds."""
        ctx = await make_context()
        calls = []

        frame = FallbackFrame(
            FunctionFrame(lambda c: calls.append("primary")),
            FunctionFrame(lambda c: calls.append("secondary")),
        )
        assert await frame.execute(ctx) == FrameOutcome.SUCCESS

        assert calls == ["primary"]
        assert recorder.of_type(OnFallback) == []

    async def test_failure_runs_secondary(self, make_context, recorder) -> None:
        """A primary failure emits OnFallback then runs the secondary."""
        ctx = await make_context()
        calls = []

        frame = FallbackFrame(FunctionFrame(failing), FunctionFrame(lambda c: calls.append("secondary")))
        assert await frame.execute(ctx) == FrameOutcome.SUCCESS

        assert calls == ["secondary"]
        fallbacks = recorder.of_type(OnFallback)
        assert len(fallbacks) == 1
        assert isinstance(fallbacks[0].error, UserError)

    async def test_secondary_failure_propagates(self, make_context) -> None:
        """The secondary's failure becomes the frame's failure."""
        ctx = await make_context()

        def also_failing(c) -> None:
            raise ValueError("secondary down")

        with pytest.raises(UserError, match="secondary down"):
            await FallbackFrame(FunctionFrame(failing), FunctionFrame(also_failing)).execute(ctx)

    async def test_cancellation_does_not_fall_back(self, make_context) -> None:
        """Cancellation bypasses the secondary."""
        ctx = await make_context()
        ctx.token.cancel("stop")
        calls = []

        with pytest.raises(FrameCancelledError):
            await FallbackFrame(
                FunctionFrame(lambda c: None),
                FunctionFrame(lambda c: calls.append(1)),
            ).execute(ctx)
        assert calls == []


class TestConditionalFrame:
    """Tests for predicate gating."""

    async def test_truthy_runs_inner(self, make_context, recorder) -> None:
        """A true predicate runs the inner frame."""
        ctx = await make_context()
        calls = []

        frame = ConditionalFrame(FunctionFrame(lambda c: calls.append(1)), lambda c: True)
        assert await frame.execute(ctx) == FrameOutcome.SUCCESS

        assert calls == [1]
        assert len(recorder.of_type(OnTruthyValue)) == 1

    async def test_falsey_skips(self, make_context, recorder) -> None:
        """A false predicate yields SKIPPED without running the inner frame."""
        ctx = await make_context()
        calls = []

        async def never(c) -> bool:
            return False

        frame = ConditionalFrame(FunctionFrame(lambda c: calls.append(1)), never)
        assert await frame.execute(ctx) == FrameOutcome.SKIPPED

        assert calls == []
        assert len(recorder.of_type(OnFalseyValue)) == 1

    async def test_falsey_runs_fallback(self, make_context) -> None:
        """An alternate frame runs instead of skipping."""
        ctx = await make_context()
        calls = []

        frame = ConditionalFrame(
            FunctionFrame(lambda c: calls.append("inner")),
            lambda c: False,
            fallback=FunctionFrame(lambda c: calls.append("fallback")),
        )
        assert await frame.execute(ctx) == FrameOutcome.SUCCESS
        assert calls == ["fallback"]

    async def test_error_on_false(self, make_context) -> None:
        """error_on_false turns the skip into a failure."""
        ctx = await make_context()

        def is_weekend(c) -> bool:
            return False

        frame = ConditionalFrame(FunctionFrame(lambda c: None), is_weekend, error_on_false=True)
        with pytest.raises(ConditionFailedError, match="is_weekend"):
            await frame.execute(ctx)

    async def test_raising_predicate_is_user_error(self, make_context) -> None:
        """A predicate that raises fails the frame with UserError."""
        ctx = await make_context()

        def broken(c) -> bool:
            raise ValueError("predicate broke")

        with pytest.raises(UserError, match="predicate broke") as exc_info:
            await ConditionalFrame(FunctionFrame(lambda c: None), broken).execute(ctx)
        assert isinstance(exc_info.value.wrapped, ValueError)


class TestFallbackOverConditional:
    """Predicate failures are ordinary frame failures to an enclosing fallback."""

    async def test_raising_predicate_runs_secondary(self, make_context, recorder) -> None:
        ctx = await make_context()
        calls = []

        def broken(c) -> bool:
            raise ValueError("predicate broke")

        frame = FallbackFrame(
            ConditionalFrame(FunctionFrame(lambda c: calls.append("inner")), broken),
            FunctionFrame(lambda c: calls.append("secondary")),
        )
        assert await frame.execute(ctx) == FrameOutcome.SUCCESS

        assert calls == ["secondary"]
        assert isinstance(recorder.of_type(OnFallback)[0].error, UserError)
