import pytest

from qlimaster.changes import (
    AddTeam,
    ClearScore,
    DeleteTeam,
    DuplicateTeamError,
    EmptyTeamNameError,
    InvalidChangeError,
    InvalidConfigError,
    InvalidRoundError,
    QuizChangeError,
    RenameTeam,
    SetConfig,
    SetPlayers,
    SetScore,
    UnknownTeamError,
    apply,
)
from qlimaster.model import Config, default_config, new_quiz


def with_teams(*names):
    quiz = new_quiz(default_config())
    for name in names:
        quiz, _ = apply(quiz, AddTeam(name))
    return quiz


def test_add_team():
    quiz = new_quiz(default_config())
    quiz2, res = apply(quiz, AddTeam("Alpha"))
    assert res.mutated
    assert len(quiz2.teams) == 1
    assert quiz2.teams[0].name == "Alpha"
    assert quiz2.teams[0].id.startswith("t_")
    assert len(quiz2.teams[0].id) == 14
    assert res.re_ranked
    assert quiz.teams == []


def test_add_team_ids_are_distinct():
    quiz = with_teams("a", "b")
    assert quiz.teams[0].id != quiz.teams[1].id
    assert len({t.id for t in quiz.teams}) == 2


def test_add_team_trims_name_and_players():
    quiz, _ = apply(new_quiz(default_config()), AddTeam("  Alpha ", " alice "))
    assert quiz.teams[0].name == "Alpha"
    assert quiz.teams[0].players == "alice"


def test_add_team_duplicate():
    quiz = with_teams("Alpha")
    with pytest.raises(DuplicateTeamError):
        apply(quiz, AddTeam("alpha"))


def test_add_team_empty_name():
    with pytest.raises(EmptyTeamNameError):
        apply(new_quiz(default_config()), AddTeam("   "))


def test_set_score():
    quiz = with_teams("a")
    team_id = quiz.teams[0].id
    quiz2, res = apply(quiz, SetScore(team_id, 1, 5))
    assert res.mutated
    assert quiz2.teams[0].score(1) == pytest.approx(5.0)
    assert res.round_just_completed == 1
    assert res.re_ranked


def test_set_score_same_value_is_not_mutation():
    quiz = with_teams("a")
    team_id = quiz.teams[0].id
    quiz, _ = apply(quiz, SetScore(team_id, 1, 5))
    _, res = apply(quiz, SetScore(team_id, 1, 5))
    assert res.mutated is False
    assert res.round_just_completed == 0
    assert res.re_ranked is False


def test_set_score_unknown_team():
    with pytest.raises(UnknownTeamError):
        apply(new_quiz(default_config()), SetScore("nope", 1, 1))


def test_set_score_invalid_round():
    quiz = with_teams("a")
    team_id = quiz.teams[0].id
    with pytest.raises(InvalidRoundError):
        apply(quiz, SetScore(team_id, 0, 1))
    with pytest.raises(InvalidRoundError):
        apply(quiz, SetScore(team_id, 99, 1))


@pytest.mark.parametrize("value", [11, 10.5])
def test_set_score_out_of_range(value):
    quiz = with_teams("a")
    with pytest.raises(InvalidChangeError):
        apply(quiz, SetScore(quiz.teams[0].id, 1, value))


def test_clear_score():
    quiz = with_teams("a")
    team_id = quiz.teams[0].id
    quiz, _ = apply(quiz, SetScore(team_id, 1, 5))
    quiz, _ = apply(quiz, ClearScore(team_id, 1))
    assert quiz.teams[0].score(1) is None


def test_clear_score_invalid_round():
    quiz = with_teams("a")
    with pytest.raises(InvalidRoundError):
        apply(quiz, ClearScore(quiz.teams[0].id, 42))


def test_perfect_round_detection():
    quiz = with_teams("a", "b")
    quiz, res = apply(quiz, SetScore(quiz.teams[0].id, 1, 10))
    assert len(res.new_perfect_rounds) == 1
    assert res.new_perfect_rounds[0].team_id == quiz.teams[0].id
    assert res.new_perfect_rounds[0].round_number == 1

    quiz, res = apply(quiz, SetScore(quiz.teams[1].id, 1, 7))
    assert res.new_perfect_rounds == ()
    assert res.round_just_completed == 1


def test_delete_team():
    quiz = with_teams("a", "b", "c")
    removed = quiz.teams[1].id
    quiz, res = apply(quiz, DeleteTeam(removed))
    assert res.mutated
    assert res.re_ranked
    assert len(quiz.teams) == 2
    assert quiz.find_team(removed) is None


def test_delete_unknown_team():
    with pytest.raises(UnknownTeamError):
        apply(with_teams("a"), DeleteTeam("nope"))


def test_rename_team():
    quiz = with_teams("Alpha", "Beta")
    quiz2, _ = apply(quiz, RenameTeam(quiz.teams[0].id, "Gamma"))
    assert quiz2.teams[0].name == "Gamma"
    with pytest.raises(DuplicateTeamError):
        apply(quiz, RenameTeam(quiz.teams[0].id, "beta"))


def test_rename_team_case_change_allowed():
    quiz = with_teams("Alpha")
    quiz2, res = apply(quiz, RenameTeam(quiz.teams[0].id, "ALPHA"))
    assert quiz2.teams[0].name == "ALPHA"
    assert res.mutated


def test_rename_team_empty():
    quiz = with_teams("Alpha")
    with pytest.raises(EmptyTeamNameError):
        apply(quiz, RenameTeam(quiz.teams[0].id, " "))


def test_set_players():
    quiz = with_teams("a")
    quiz2, _ = apply(quiz, SetPlayers(quiz.teams[0].id, "  alice, bob  "))
    assert quiz2.teams[0].players == "alice, bob"


def test_set_config():
    quiz = with_teams("a")
    quiz, _ = apply(quiz, SetScore(quiz.teams[0].id, 7, 3))
    new_cfg = Config(rounds=6, questions_per_round=10, checkpoints=(3, 6))
    quiz2, res = apply(quiz, SetConfig(new_cfg))
    assert res.re_ranked
    assert quiz2.config.rounds == 6
    assert quiz2.teams[0].score(7) is None
    assert quiz.teams[0].score(7) == 3


def test_set_config_invalid():
    with pytest.raises(InvalidConfigError):
        apply(new_quiz(default_config()), SetConfig(Config(rounds=0, questions_per_round=0)))


def test_winner_decided():
    quiz = with_teams("a", "b")
    quiz, _ = apply(quiz, SetConfig(Config(rounds=2, questions_per_round=10, checkpoints=(2,))))
    aid, bid = quiz.teams[0].id, quiz.teams[1].id
    quiz, _ = apply(quiz, SetScore(aid, 1, 5))
    quiz, _ = apply(quiz, SetScore(bid, 1, 5))
    quiz, _ = apply(quiz, SetScore(aid, 2, 5))
    _, res = apply(quiz, SetScore(bid, 2, 7))
    assert res.winner_decided


def test_tie_means_no_winner():
    quiz = with_teams("a", "b")
    quiz, _ = apply(quiz, SetConfig(Config(rounds=1, questions_per_round=10, checkpoints=(1,))))
    aid, bid = quiz.teams[0].id, quiz.teams[1].id
    quiz, _ = apply(quiz, SetScore(aid, 1, 5))
    _, res = apply(quiz, SetScore(bid, 1, 5))
    assert res.winner_decided is False


def test_input_not_mutated():
    quiz = with_teams("a")
    apply(quiz, SetScore(quiz.teams[0].id, 1, 5))
    assert quiz.teams[0].score(1) is None


def test_unknown_change_type():
    with pytest.raises(InvalidChangeError):
        apply(new_quiz(default_config()), object())


def test_errors_share_base_class():
    with pytest.raises(QuizChangeError):
        apply(new_quiz(default_config()), DeleteTeam("missing"))