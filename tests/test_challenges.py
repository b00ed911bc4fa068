import sys

import pytest

import challenges


def test_all_challenges_found():
    nums = [fn.__name__ for fn in challenges.get_all_challenges()]
    assert nums == ["challenge{}".format(i) for i in range(9, 18)]


@pytest.mark.parametrize("num", range(9, 18))
def test_run_challenge(num, capsys):
    challenges.run_challenge(num)


def test_unknown_challenge():
    with pytest.raises(challenges.ChallengeNotFoundError):
        challenges.run_challenge(1)


def test_query_budget_fails_challenge():
    with pytest.raises(challenges.ChallengeFailedError) as exc_info:
        challenges.run_challenge(12, query_budget=10)
    assert isinstance(exc_info.value.__cause__, challenges.attacks.QueryBudgetExceededError)


def test_options_only_reach_challenges_that_accept_them():
    challenges.run_challenge(9, query_budget=10)


def test_main(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["challenges.py", "-q", "9", "15", "16"])
    assert challenges.main() == 0
    output = capsys.readouterr().out
    assert "Running challenge 15: PKCS#7 padding validation" in output
    assert "Challenge 16 passed." in output


def test_main_reports_failure(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["challenges.py", "-q", "-b", "5", "17"])
    assert challenges.main() == 1
    captured = capsys.readouterr()
    assert "Challenge 17 passed." not in captured.out
    assert "QueryBudgetExceededError" in captured.err
