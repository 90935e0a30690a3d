import pytest

from regression_suite import SCENARIOS


@pytest.mark.parametrize("scenario", SCENARIOS, ids=lambda fn: fn.__name__)
def test_regression_scenario(scenario):
    assert scenario() is True


def test_runner_filters_scenarios_by_name(capsys):
    from run_regression import main

    assert main(["escape"]) == 0
    out = capsys.readouterr().out
    assert "ok   escape_forfeits_rewards" in out
    assert "1/1 battle scenarios passed." in out
    assert main(["no_such_scenario"]) == 2
