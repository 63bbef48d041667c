"""Tests for the pull request event driver."""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from renovate_git_history import action
from renovate_git_history.config import Settings
from renovate_git_history.exceptions import CommentPostError, EventError
from renovate_git_history.models.update import UpdateRecord

TABLE = (
    "| Package | Update | Change |\n"
    "|---|---|---|\n"
    "| https://github.com/acme/one | digest | `1111111` -> `2222222` |\n"
    "| https://github.com/acme/two | digest | `3333333` -> `4444444` |\n"
    "\n"
)

RENOVATE_BODY = (
    "This PR contains the following updates:\n\n"
    + TABLE
    + "---\n\nThis PR has been generated by [Renovate Bot](https://github.com/renovatebot/renovate).\n"
)


def make_event(body=RENOVATE_BODY):
    return {
        "pull_request": {"number": 42, "body": body},
        "repository": {"name": "app", "owner": {"login": "acme"}},
    }


@pytest.fixture
def event_file(tmp_path):
    path = tmp_path / "event.json"
    path.write_text(json.dumps(make_event()))
    return path


class TestLoadEvent:
    def test_load_event(self, event_file):
        assert action.load_event(event_file)["pull_request"]["number"] == 42

    def test_missing_path(self):
        with pytest.raises(EventError, match="GITHUB_EVENT_PATH"):
            action.load_event(None)

    def test_missing_file(self, tmp_path):
        with pytest.raises(EventError, match="Cannot read event payload"):
            action.load_event(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "event.json"
        path.write_text("{not json")
        with pytest.raises(EventError, match="Invalid event payload"):
            action.load_event(path)


class TestPullRequestBody:
    def test_body(self):
        assert action.pull_request_body(make_event("hello")) == "hello"

    def test_null_body(self):
        assert action.pull_request_body(make_event(None)) == ""

    def test_not_a_pull_request(self):
        with pytest.raises(EventError, match="No pull request found."):
            action.pull_request_body({"issue": {"number": 1}})


@pytest.mark.parametrize(
    "body, expected",
    [
        ("Generated by Renovate Bot", True),
        ("opened by renovate[bot]", True),
        ("RENOVATE bot", True),
        ("renovatebot/renovate", False),
        ("Dependabot bump", False),
    ],
)
def test_is_renovate_body(body, expected):
    assert action.is_renovate_body(body) is expected


class TestBuildComment:
    def test_concatenates_in_table_order(self):
        renderer = MagicMock()
        renderer.render.side_effect = lambda record: f"<{record.reference}>"

        comment = action.build_comment(RENOVATE_BODY, renderer)

        assert comment == "<https://github.com/acme/one><https://github.com/acme/two>"
        assert [c.args[0] for c in renderer.render.call_args_list] == [
            UpdateRecord(
                reference="https://github.com/acme/one",
                old_hash="1111111",
                new_hash="2222222",
            ),
            UpdateRecord(
                reference="https://github.com/acme/two",
                old_hash="3333333",
                new_hash="4444444",
            ),
        ]

    def test_not_renovate(self):
        renderer = MagicMock()

        assert action.build_comment(TABLE, renderer) is None
        renderer.render.assert_not_called()

    def test_no_table(self):
        renderer = MagicMock()

        assert action.build_comment("renovate[bot] bumped things", renderer) is None
        renderer.render.assert_not_called()

    def test_no_digest_rows(self):
        body = (
            "Renovate Bot\n\n"
            "| Package | Update | Change |\n"
            "|---|---|---|\n"
            "| lodash | patch | `4.17.20` -> `4.17.21` |\n"
        )

        assert action.build_comment(body, MagicMock()) is None


@pytest.mark.parametrize(
    "api_url",
    ["https://ghe.example/api/v3", "https://ghe.example/api/v3/"],
)
def test_api_base_has_no_trailing_slash(api_url):
    assert Settings(api_url=api_url).api_base == "https://ghe.example/api/v3"


class TestPostComment:
    def test_posts_to_issue_comments(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 7})

        settings = Settings(github_token="secret", api_url="https://ghe.example/api/v3/")
        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            result = action.post_comment(settings, make_event(), "hello", client=client)

        assert result == {"id": 7}
        assert seen["url"] == "https://ghe.example/api/v3/repos/acme/app/issues/42/comments"
        assert seen["auth"] == "token secret"
        assert seen["body"] == {"body": "hello"}

    def test_http_error(self):
        def handler(request):
            return httpx.Response(403, json={"message": "Forbidden"})

        settings = Settings(github_token="secret")
        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(CommentPostError, match="Failed to create comment"):
                action.post_comment(settings, make_event(), "hello", client=client)

    def test_incomplete_event(self):
        event = make_event()
        del event["repository"]

        with pytest.raises(EventError, match="missing"):
            action.post_comment(Settings(github_token="t"), event, "hello", client=MagicMock())


class TestRun:
    def test_dry_run_returns_comment(self, event_file):
        with patch.object(action, "HistoryRenderer") as renderer_cls:
            renderer_cls.from_settings.return_value.render.return_value = "fragment\n"
            comment = action.run(Settings(event_path=event_file), dry_run=True)

        assert comment == "fragment\nfragment\n"

    def test_posts_comment(self, event_file):
        settings = Settings(event_path=event_file, github_token="secret")
        with patch.object(action, "HistoryRenderer") as renderer_cls, patch.object(
            action, "post_comment"
        ) as post:
            renderer_cls.from_settings.return_value.render.return_value = "x"
            action.run(settings)

        post.assert_called_once()
        assert post.call_args.args[2] == "xx"

    def test_requires_token(self, event_file):
        with patch.object(action, "HistoryRenderer") as renderer_cls:
            renderer_cls.from_settings.return_value.render.return_value = "x"
            with pytest.raises(CommentPostError, match="GITHUB_TOKEN"):
                action.run(Settings(event_path=event_file))

    def test_nothing_to_do(self, tmp_path):
        path = tmp_path / "event.json"
        path.write_text(json.dumps(make_event("Just a human PR")))

        assert action.run(Settings(event_path=path, github_token="t")) is None
