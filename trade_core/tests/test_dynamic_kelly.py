import threading

import pytest

from trade_core.core.config import SizingConfig
from trade_core.sizing.calculator import (
    DynamicKellyCalculator,
    TradeOutcome,
    create_dynamic_kelly_calculator,
)

# edge=0.5, p=0.6 -> full Kelly 0.28, quarter Kelly 0.07
EDGE, P = 0.5, 0.6


def test_rejects_non_positive_initial_bankroll():
    with pytest.raises(ValueError):
        DynamicKellyCalculator(0)
    with pytest.raises(ValueError):
        DynamicKellyCalculator(float("nan"))


def test_clean_history_sizes_at_quarter_kelly(full_history_calc):
    calc = full_history_calc()
    r = calc.calculate(EDGE, P)
    assert r.base_kelly == pytest.approx(0.07)
    assert r.kelly_fraction == pytest.approx(0.07)
    assert r.position_size == pytest.approx(70.0)
    assert r.adjustments == []
    assert r.confidence == pytest.approx(1.0)
    assert r.warnings == []


def test_thin_edge_is_floored_at_min_kelly(full_history_calc):
    calc = full_history_calc()
    r = calc.calculate(0.05, 0.6)
    assert r.base_kelly == 0.0
    assert r.kelly_fraction == pytest.approx(0.01)
    assert any("no positive Kelly edge" in w for w in r.warnings)


def test_capped_at_max_kelly(full_history_calc):
    calc = full_history_calc(base_multiplier=1.0, max_kelly=0.25)
    r = calc.calculate(EDGE, P)
    assert r.base_kelly == pytest.approx(0.28)
    assert r.kelly_fraction == pytest.approx(0.25)
    assert any("capped at max Kelly" in w for w in r.warnings)


def test_drawdown_guard_halves_fraction(full_history_calc):
    calc = full_history_calc()
    calc.record_trade("loss", -200.0)
    calc.record_trade("loss", -200.0)
    state = calc.get_state()
    assert state.bankroll == pytest.approx(600.0)
    assert state.current_drawdown == pytest.approx(0.4)

    r = calc.calculate(EDGE, P)
    # two losses sit inside the streak grace, so only the drawdown guard applies
    assert [a.reason for a in r.adjustments] == ["drawdown guard"]
    assert r.kelly_fraction == pytest.approx(0.035)
    assert r.position_size == pytest.approx(0.035 * 600.0)
    assert r.confidence == pytest.approx(0.5 * (1 - 0.4))
    assert any("reduced due to drawdown" in w for w in r.warnings)


def test_drawdown_below_limit_does_not_throttle(full_history_calc):
    calc = full_history_calc()
    calc.record_trade("loss", -100.0)  # 10% drawdown < 15%
    r = calc.calculate(EDGE, P)
    assert r.adjustments == []
    assert r.confidence == pytest.approx(0.9)


def test_loss_streak_reduction(full_history_calc):
    calc = full_history_calc(max_drawdown=1.0)
    for _ in range(4):
        calc.record_trade("loss", -1.0)
    r = calc.calculate(EDGE, P)
    assert [a.reason for a in r.adjustments] == ["loss streak"]
    assert r.adjustments[0].multiplier == pytest.approx(0.81)
    assert r.kelly_fraction == pytest.approx(0.07 * 0.81)
    assert any("4 consecutive losses" in w for w in r.warnings)


def test_loss_streak_reduction_floors_at_half(full_history_calc):
    calc = full_history_calc(max_drawdown=1.0)
    for _ in range(12):
        calc.record_trade("loss", -1.0)
    r = calc.calculate(EDGE, P)
    assert r.adjustments[0].multiplier == pytest.approx(0.5)


def test_win_resets_loss_streak(full_history_calc):
    calc = full_history_calc(max_drawdown=1.0)
    for _ in range(5):
        calc.record_trade("loss", -1.0)
    calc.record_trade("win", 1.0)
    state = calc.get_state()
    assert state.loss_streak == 0
    assert state.win_streak == 1
    assert calc.calculate(EDGE, P).adjustments == []


def test_sample_size_scales_linearly():
    calc = DynamicKellyCalculator(1000.0, SizingConfig(lookback_trades=20))
    for _ in range(5):
        calc.record_trade(TradeOutcome.WIN, 0.0)
    r = calc.calculate(EDGE, P)
    assert [a.reason for a in r.adjustments] == ["sample size"]
    assert r.adjustments[0].multiplier == pytest.approx(0.25)
    assert r.kelly_fraction == pytest.approx(0.0175)
    assert any("insufficient trade history (5/20" in w for w in r.warnings)


def test_fresh_calculator_sits_on_min_kelly_floor():
    calc = DynamicKellyCalculator(1000.0)
    r = calc.calculate(EDGE, P)
    assert r.kelly_fraction == pytest.approx(0.01)
    assert r.position_size == pytest.approx(10.0)
    assert r.confidence == 0.0


@pytest.mark.parametrize("edge,p", [(EDGE, P), (0.0, 0.5), (10.0, 0.99), (-1.0, 2.0), (float("nan"), 0.5)])
def test_fraction_always_within_bounds(full_history_calc, edge, p):
    calc = full_history_calc()
    r = calc.calculate(edge, p)
    assert calc.cfg.min_kelly <= r.kelly_fraction <= calc.cfg.max_kelly
    assert r.position_size == pytest.approx(r.kelly_fraction * calc.get_state().bankroll)
    assert 0.0 <= r.confidence <= 1.0


def test_bad_inputs_are_clamped_with_warnings(full_history_calc):
    calc = full_history_calc()
    r = calc.calculate(-0.1, 1.5)
    assert any("negative edge_fraction" in w for w in r.warnings)
    assert any("clamped below 1" in w for w in r.warnings)
    r = calc.calculate(float("inf"), 0.6)
    assert any("not a finite number" in w for w in r.warnings)


def test_exhausted_bankroll_gives_zero_position(full_history_calc):
    calc = full_history_calc()
    calc.record_trade("loss", -1000.0)
    r = calc.calculate(EDGE, P)
    assert r.position_size == 0.0
    assert any("bankroll exhausted" in w for w in r.warnings)


def test_record_trade_rejects_bad_input():
    calc = DynamicKellyCalculator(1000.0)
    with pytest.raises(ValueError, match="outcome"):
        calc.record_trade("draw", 1.0)
    with pytest.raises(ValueError, match="pnl"):
        calc.record_trade("win", float("nan"))
    assert calc.get_state().total_trades == 0


def test_outcome_parsing_accepts_bools_and_strings():
    assert TradeOutcome.parse(True) is TradeOutcome.WIN
    assert TradeOutcome.parse(" LOSS ") is TradeOutcome.LOSS
    assert TradeOutcome.parse(TradeOutcome.WIN) is TradeOutcome.WIN


def test_peak_and_drawdown_invariants_over_a_session():
    calc = DynamicKellyCalculator(1000.0)
    pnls = [50, -30, 120, -400, 10, 300, -50]
    for pnl in pnls:
        calc.record_trade("win" if pnl > 0 else "loss", pnl)
        s = calc.get_state()
        assert s.peak_bankroll >= s.bankroll
        assert 0.0 <= s.current_drawdown <= 1.0
    s = calc.get_state()
    assert s.bankroll == pytest.approx(1000.0 + sum(pnls))
    assert s.peak_bankroll == pytest.approx(1140.0)


def test_trade_window_bounded_and_win_rate_matches():
    calc = DynamicKellyCalculator(1000.0, SizingConfig(lookback_trades=4))
    outcomes = ["win", "loss", "win", "win", "loss", "loss"]
    for o in outcomes:
        calc.record_trade(o, 1.0 if o == "win" else -1.0)
    s = calc.get_state()
    assert len(s.trade_window) == 4
    # window holds the last four: win, win, loss, loss
    assert [r.won for r in s.trade_window] == [True, True, False, False]
    assert s.recent_win_rate == pytest.approx(0.5)
    assert s.total_trades == 6
    assert s.loss_streak == 2


def test_state_snapshot_is_immutable_and_detached():
    calc = DynamicKellyCalculator(1000.0)
    calc.record_trade("win", 10.0)
    snap = calc.get_state()
    calc.record_trade("loss", -500.0)
    assert snap.bankroll == pytest.approx(1010.0)
    assert len(snap.trade_window) == 1
    with pytest.raises(Exception):
        snap.bankroll = 0.0


def test_update_bankroll_tracks_peak():
    calc = DynamicKellyCalculator(1000.0)
    calc.update_bankroll(1200.0)
    calc.update_bankroll(900.0)
    s = calc.get_state()
    assert s.peak_bankroll == pytest.approx(1200.0)
    assert s.current_drawdown == pytest.approx(0.25)
    with pytest.raises(ValueError):
        calc.update_bankroll(float("inf"))


def test_reset_restores_initial_state():
    calc = DynamicKellyCalculator(500.0)
    for _ in range(3):
        calc.record_trade("loss", -50.0)
    calc.reset()
    s = calc.get_state()
    assert s.bankroll == 500.0
    assert s.peak_bankroll == 500.0
    assert s.current_drawdown == 0.0
    assert s.loss_streak == 0
    assert s.trade_window == ()
    assert s.total_trades == 0


def test_concurrent_outcome_reports_do_not_interleave():
    calc = DynamicKellyCalculator(1000.0, SizingConfig(lookback_trades=50))

    def worker():
        for _ in range(100):
            calc.record_trade("win", 1.0)
            calc.calculate(EDGE, P)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    s = calc.get_state()
    assert s.total_trades == 800
    assert s.bankroll == pytest.approx(1800.0)
    assert s.win_streak == 800
    assert len(s.trade_window) == 50


def test_instances_share_nothing():
    a = DynamicKellyCalculator(1000.0)
    b = DynamicKellyCalculator(1000.0)
    a.record_trade("loss", -300.0)
    assert b.get_state().bankroll == 1000.0
    assert b.get_state().total_trades == 0


def test_factory_accepts_dict_config():
    calc = create_dynamic_kelly_calculator(2000.0, {"max_kelly": 0.1, "lookback_trades": 5})
    assert calc.cfg.max_kelly == 0.1
    assert calc.get_state().bankroll == 2000.0
    assert create_dynamic_kelly_calculator(100.0).cfg == SizingConfig()


def test_category_stats_tracked_per_category():
    calc = DynamicKellyCalculator(1000.0)
    for outcome in ("win", "win", "loss"):
        calc.record_trade(outcome, 10.0 if outcome == "win" else -10.0, category="politics")
    calc.record_trade("loss", -5.0, category="crypto")
    calc.record_trade("win", 5.0)

    cats = calc.get_state().category_win_rates
    assert set(cats) == {"politics", "crypto"}
    assert cats["politics"].total == 3 and cats["politics"].wins == 2
    assert cats["politics"].win_rate == pytest.approx(2 / 3)
    assert cats["crypto"].win_rate == 0.0

    calc.reset()
    assert calc.get_state().category_win_rates == {}


def test_category_kelly_uses_category_win_rate(full_history_calc):
    calc = full_history_calc(max_drawdown=1.0)
    # under three trades the category falls back to p=0.6
    calc.record_trade("win", 0.0, category="sports")
    assert calc.get_category_kelly("sports", EDGE) == pytest.approx(0.07)
    assert calc.get_category_kelly("never-seen", EDGE) == pytest.approx(0.07)

    calc.record_trade("win", 0.0, category="sports")
    calc.record_trade("win", 0.0, category="sports")
    calc.record_trade("loss", 0.0, category="sports")
    # 3/4 wins: b = 0.5/0.25 = 2, f = 0.75 - 0.25/2 = 0.625 -> quarter 0.15625
    assert calc.get_category_kelly("sports", EDGE) == pytest.approx(0.15625)


def test_recent_volatility_of_returns():
    calc = DynamicKellyCalculator(1000.0, SizingConfig(lookback_trades=10))
    assert calc.get_state().recent_volatility == 0.0
    calc.record_trade("win", 100.0)   # +10% of 1000
    assert calc.get_state().recent_volatility == 0.0
    calc.record_trade("loss", -110.0)  # -10% of 1100
    s = calc.get_state()
    assert s.trade_window[0].return_pct == pytest.approx(0.10)
    assert s.trade_window[1].return_pct == pytest.approx(-0.10)
    assert s.recent_volatility == pytest.approx(0.10)
