# revdog

Building blocks for tools that review code changes:

- `revdog.udiff` parses unified diffs into files, hunks and lines. This
  includes git's extended headers and C-quoted file names. Each line carries
  its position in the diff and its line numbers in the old and new file.
- `revdog.cienv` reads build information from the environment variables of CI
  services. It knows GitHub Actions, Travis CI, CircleCI, drone.io, GitLab CI,
  Bitbucket Pipelines and Gerrit.
- `revdog.comments` writes review comments to a stream. A comment is written
  either as the tool's original output or as `path:line:col: [tool] message`.
  The module can also send one comment to several services at once.
- `revdog.diffservice` supplies a diff from a string or from a command such as
  `git diff`, or supplies an empty one.

The package uses only the standard library.

## Installation

```
pip install revdog
```

## Parsing a diff

```python
from revdog.udiff import parse_multi_file, LineType

with open("change.diff") as fh:
    text = fh.read()

for file_diff in parse_multi_file(text):
    for hunk in file_diff.hunks:
        for line in hunk.lines:
            if line.type is LineType.ADDED:
                print(file_diff.path_new, line.lnum_new, line.content)
```

Each `FileDiff` has these fields:

- `path_old`, `path_new`: the file paths.
- `time_old`, `time_new`: the timestamps. They are empty when the header has
  none.
- `extended`: the extended header lines.
- `hunks`: the list of hunks.

Each `Hunk` has these fields:

- `start_line_old`, `line_length_old`, `start_line_new`, `line_length_new`:
  the ranges from the hunk header.
- `section`: the optional section heading.
- `lines`: the lines of the hunk.

Each `Line` has these fields:

- `type`: one of `LineType.UNCHANGED`, `ADDED` or `DELETED`.
- `content`: the text of the line, without its leading marker.
- `lnum_diff`: the line's position in the diff, counted from the file's first
  hunk header.
- `lnum_old`, `lnum_new`: the line numbers in the old and new file. Each is 0
  where it does not apply.

Both parse functions accept either `str` or `bytes`. They raise different
errors:

- `parse_file` parses the diff of a single file and returns `None` when the
  input holds no diff. It raises `NoNewFileError`, `NoHunksError` or
  `InvalidHunkRangeError` on malformed input. All three are subclasses of
  `DiffParseError`, which is itself a `ValueError`.
- `parse_multi_file` raises none of these errors. It stops at the first
  malformed file and returns the files parsed before it.

The lower-level pieces can also be used on their own:

- `LineReader`
- `HunkParser`
- `parse_hunk_range`
- `parse_ls`
- `parse_file_header`
- `parse_extended_header`
- `unquote_c_style`

## Build information from CI

```python
from revdog.cienv import get_build_info, CIEnvError

try:
    info, is_pull_request = get_build_info()
except CIEnvError as err:
    print(err)
else:
    print(info.owner, info.repo, info.sha, info.pull_request, info.branch)
```

Inside GitHub Actions, `get_build_info` reads the event file named by
`GITHUB_EVENT_PATH`. Elsewhere it reads the variables of the other services.

You can set the values yourself when a CI service does not provide them:

- `CI_REPO_OWNER`
- `CI_REPO_NAME`
- `CI_COMMIT`
- `CI_PULL_REQUEST`
- `CI_BRANCH`

For Gerrit, `get_gerrit_build_info()` reads `GERRIT_CHANGE_ID`,
`GERRIT_REVISION_ID` and `GERRIT_BRANCH`. It raises `CIEnvError` if any of them
is missing.

Other helpers:

- `load_github_event()` and `load_github_event_from_path(path)` load a GitHub
  event payload as a `GitHubEvent`.
- `build_info_from_github_event_path(path)` returns a `BuildInfo` from an event
  file.
- `is_in_github_action()`, `is_in_bitbucket_pipeline()` and
  `is_in_bitbucket_pipe()` tell where the code is running.
- `has_read_only_permission_github_token()` tells whether the run is for a pull
  request from a fork with a read-only token.

## Writing comments

The writers take any comment object of the following shape:

- `comment.tool_name`
- `comment.result.diagnostic`, which carries:
  - `message`
  - `original_output`
  - `location.path`
  - `location.range.start.line`
  - `location.range.start.column`

A missing attribute counts as empty or zero.

```python
import sys
from types import SimpleNamespace as NS
from revdog.comments import UnifiedCommentWriter, RawCommentWriter, multi_comment_service

comment = NS(
    tool_name="golint",
    result=NS(diagnostic=NS(
        message="exported var X should have comment",
        original_output="x.go:3:5: exported var X should have comment",
        location=NS(path="x.go", range=NS(start=NS(line=3, column=5))),
    )),
)

service = multi_comment_service(UnifiedCommentWriter(sys.stdout), RawCommentWriter(sys.stderr))
service.post(comment)   # stdout: x.go:3:5: [golint] exported var X should have comment
service.flush()
```

`UnifiedCommentWriter` leaves out the line when it is 0. It leaves out the
column when that is 0.

`MultiCommentService.post` stops at the first service that raises.
`MultiCommentService.flush` flushes each service that is a
`BulkCommentService`.

## Getting a diff

```python
from revdog.diffservice import DiffCmd, DiffString, EmptyDiff

source = DiffCmd(["git", "diff"], strip=1)
data = source.diff()   # bytes
```

`DiffCmd` runs its command once and caches the output. It is safe to call from
several threads. A non-zero exit status is accepted if the command printed
something. Otherwise `diff()` raises `DiffCommandError`.

`DiffString` returns a fixed diff. `EmptyDiff` always returns `b""`. Each
service has a `strip` attribute that holds the number of leading path
components to strip from file names.

## What this package does not do

The package has no command-line program. It does not read linter output or
filter results against a diff. It does not post comments to GitHub, GitLab,
Gerrit or Bitbucket. It provides the diff, environment and comment-writing
parts that such a tool is built from.

## Running the tests

```
pip install -e ".[test]"
pytest
```