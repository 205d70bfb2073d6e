# qlimaster

Score keeping for pub quizzes. Each quiz lives in its own folder, for
example `2026-04-14/`, as a `quiz.hujson` file. The file is JSON that
also accepts `//` and `/* */` comments and trailing commas, so you can
annotate it by hand. Comments placed before or after the top-level
object are kept when the file is saved again.

What it does:

- Scores are entered in half-point steps with a shorthand:
  - `1.` or `1,` means 1.5.
  - A bare `.` or `,` means 0.5.
  - `1,5` and `1.5` both work.
  - An empty input means 0.

  Scores are written back in the European style (`2,5`).
- Teams are ranked by their total using standard competition ranking.
  Two teams tied for first are both 1, and the next team is 3. Ties are
  listed alphabetically, ignoring case.
- Cumulative checkpoint columns, by default after rounds 4 and 8, and
  per-column averages.
- A history of team names across quizzes. Names can be looked up with
  a fuzzy search that ignores case and accents.
- Export to CSV and XLSX. No third-party libraries are needed.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command line

Run these commands from inside a quiz folder, the one that holds
`quiz.hujson`. Global options go before the subcommand.

```
qlimaster [--rounds=8] [--questions=10] [--checkpoints=4,8] [--quiz-root=DIR]
```

Without a subcommand, `qlimaster` behaves as follows:

1. It validates the configuration given by the options.
2. If the current folder has no `quiz.hujson`, it creates a new, empty
   quiz with that configuration. If the file exists, it loads it.
3. If the quiz has teams, it records their names in the team-name
   history. The history file is found from `--quiz-root`, or from the
   current folder when that option is not given.
4. It prints the file path and the standings table: position, team,
   players, rounds, checkpoints, total and an averages row.

```
qlimaster export [--format=csv|xlsx|both] [--out=DIR]
```

Writes `quiz.csv` and/or `quiz.xlsx`. The default format is `both`. The
files go to `--out`, or to the current folder when that option is not
given.

```
qlimaster history rebuild [--quiz-root=DIR]
```

Scans every `*/quiz.hujson` under the quiz root and overwrites the
team-name history. A folder named `YYYY-MM-DD...` supplies its date.
For any other folder the file's modification time is used.

Without `--quiz-root`, the command walks upwards from the current
folder. It stops at the first folder that holds a `history.hujson` or a
dated subfolder. If no folder qualifies, it uses the parent of the
current folder.

The history is written as `history.hujson` in the quiz root. When no
quiz root can be found, it goes to `qlimaster/history.hujson` in your
user configuration folder instead. On Linux that is `$XDG_CONFIG_HOME`
or `~/.config`.

```
qlimaster version
```

Prints the installed version.

Errors are reported on standard error, and the exit status is 1.

## Library use

Every change to a quiz goes through `qlimaster.changes.apply`. It never
modifies the quiz you pass in. It returns a new quiz and a `Result`,
which has these fields:

- `mutated`
- `round_just_completed`
- `new_perfect_rounds`
- `re_ranked`
- `winner_decided`

The changes you can apply are:

- `SetScore`
- `ClearScore`
- `AddTeam`
- `RenameTeam`
- `SetPlayers`
- `DeleteTeam`
- `SetConfig`

```python
from qlimaster.model import default_config, new_quiz, rank
from qlimaster.changes import AddTeam, SetScore, apply
from qlimaster.score import parse, format_score
from qlimaster import store, export

quiz = new_quiz(default_config())
quiz, result = apply(quiz, AddTeam(name="Underpuppies"))
team_id = quiz.teams[0].id

points = parse("7,", quiz.config.questions_per_round)   # 7.5
quiz, result = apply(quiz, SetScore(team_id=team_id, round_number=1, score=points))
print(result.round_just_completed)                      # 1

print(rank(quiz).position_of(team_id))                  # 1
print(format_score(quiz.teams[0].total()))              # "7,5"

store.save("quiz.hujson", quiz)
export.write_csv_file("quiz.csv", store.load("quiz.hujson"))
export.write_xlsx("quiz.xlsx", quiz)
```

When `apply` rejects a change it raises one of these exceptions, all
subclasses of `QuizChangeError`:

- `UnknownTeamError`
- `DuplicateTeamError`
- `InvalidRoundError`
- `InvalidChangeError`
- `EmptyTeamNameError`
- `InvalidConfigError`

When `parse` rejects an input it raises one of these exceptions, all
subclasses of `ScoreError`:

- `InvalidScoreError`
- `OutOfRangeError`
- `NotHalfStepError`

`store.load` raises `NotFoundError` for a missing file. For other
problems it raises `StoreError`.

The other modules are:

- `qlimaster.history`: `load`, `save`, `merge`, `record_names`,
  `record_quiz`, `scan`, `find_quiz_root` and `resolve_path` for the
  team-name history.
- `qlimaster.fuzzy`: `search(query, items)` returns `Match` objects,
  best score first. Each `Match` carries the matched positions.
- `qlimaster.layout`, `qlimaster.cells`, `qlimaster.keymap` and
  `qlimaster.textinput`: helpers for laying out a score table at a
  given terminal width, and for the cells and keys of a keyboard-driven
  editor.

## What it does not do

There is no interactive full-screen interface. The command line does
not let you add teams or enter scores. Make those changes through
`apply` in Python, or by editing `quiz.hujson` by hand.

The layout, cell, keymap and text-input helpers describe such an
interface, but nothing in the package draws it.