import pytest

from meshcontrol import NO_ACTION, STOP_ACTION, Action, ActionInfo, DataIntegrityError, Info


class TestActionInfo:
    @pytest.mark.parametrize("action", [Action.NONE, Action.STOP])
    @pytest.mark.parametrize("info", list(Info))
    def test_info_rejected_without_update(self, action, info):
        with pytest.raises(DataIntegrityError):
            ActionInfo(action, info)

    @pytest.mark.parametrize("action", [Action.CONTINUE, Action.AGAIN])
    @pytest.mark.parametrize("info", [None, *Info])
    def test_info_allowed_with_update(self, action, info):
        mod = ActionInfo(action, info)
        assert mod.needs_update
        assert mod.info == info

    def test_predicates(self):
        mod = ActionInfo(Action.CONTINUE, Info.REFINE)
        assert mod.is_continue and mod.is_refine
        assert not (mod.is_stop or mod.is_again or mod.is_derefine or mod.is_rebalance)

        assert STOP_ACTION.is_stop and not STOP_ACTION.needs_update
        assert not NO_ACTION.needs_update
        assert ActionInfo(Action.AGAIN, Info.DEREFINE).is_again

    def test_packed_codes(self):
        assert NO_ACTION.code == 0
        assert STOP_ACTION.code == 2
        assert ActionInfo(Action.CONTINUE, Info.REFINE).code == 5
        assert ActionInfo(Action.CONTINUE, Info.DEREFINE).code == 9
        assert ActionInfo(Action.CONTINUE, Info.REBALANCE).code == 13
        assert ActionInfo(Action.AGAIN, Info.DEREFINE).code == 11

    def test_code_unpacking(self):
        assert ActionInfo.from_code(13) == ActionInfo(Action.CONTINUE, Info.REBALANCE)
        assert ActionInfo.from_code(3) == ActionInfo(Action.AGAIN)
        assert ActionInfo.from_code(0) is not NO_ACTION
        assert ActionInfo.from_code(0) == NO_ACTION

    def test_invalid_code_breaks_invariant(self):
        # STOP with the REFINE bit set
        with pytest.raises(DataIntegrityError):
            ActionInfo.from_code(6)

    @pytest.mark.parametrize("code", [16, 17, 21])
    def test_unknown_info_bits_are_rejected(self, code):
        with pytest.raises(DataIntegrityError, match="Unknown info bits"):
            ActionInfo.from_code(code)

    def test_immutable(self):
        mod = ActionInfo(Action.CONTINUE, Info.REFINE)
        with pytest.raises(AttributeError):
            mod.action = Action.STOP  # type: ignore[misc]

    def test_str(self):
        assert str(ActionInfo(Action.CONTINUE, Info.REFINE)) == "CONTINUE+REFINE"
        assert str(STOP_ACTION) == "STOP"
