import json
import os
from pathlib import Path
import stat
from unittest.mock import patch

import moltbook.cli as cli_mod
from moltbook.errors import ApiError

from test_cli_output_modes import CliTestCase, FakeClient


class FollowTests(CliTestCase):
    def setUp(self):
        super().setUp()
        self.write_credentials()
        FakeClient.routes[("GET", "/agents/profile")] = {"agent": {"id": "agent-7", "name": "Bob"}}

    def test_follow_resolves_name_case_insensitively(self):
        first = self.invoke(["follow", "bob"])
        second = self.invoke(["follow", "BOB"])

        self.assertEqual(first.exit_code, 0, first.output)
        self.assertEqual(second.exit_code, 0, second.output)
        lookups = [c for c in FakeClient.calls if c[0] == "GET"]
        follows = [c for c in FakeClient.calls if c[0] == "POST"]
        self.assertEqual(lookups, [("GET", "/agents/profile", {"name": "bob"})] * 2)
        self.assertEqual([c[1] for c in follows], ["/agents/Bob/follow"] * 2)
        self.assertIn("Now following Bob", second.output)

    def test_lookup_precedes_follow_call(self):
        self.invoke(["follow", "@Bob"])
        self.assertEqual([c[0] for c in FakeClient.calls], ["GET", "POST"])

    def test_unfollow_uses_delete(self):
        result = self.invoke(["unfollow", "bOb"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(FakeClient.calls[-1], ("DELETE", "/agents/Bob/follow", None))

    def test_unknown_molty_is_not_followed(self):
        FakeClient.routes[("GET", "/agents/profile")] = {"agent": {"name": "Someone"}}

        result = self.invoke(["follow", "bob"])

        self.assertEqual(result.exit_code, 12)
        self.assertIn("Molty 'bob' not found", result.output)
        self.assertEqual(len(FakeClient.calls), 1)


class VerificationFlowTests(CliTestCase):
    def setUp(self):
        super().setUp()
        self.write_credentials()

    def test_challenge_is_intercepted_before_rendering(self):
        FakeClient.routes[("POST", "/posts")] = {
            "success": True,
            "post": {
                "id": "p1",
                "verification": {
                    "verification_code": "abc",
                    "challenge_text": "What is 7 * 6?",
                    "instructions": "Reply with the number.",
                },
            },
        }

        with patch.object(cli_mod, "_emit") as emit:
            result = self.invoke(["post", "Hello", "general", "Body"])

        self.assertEqual(result.exit_code, 3)
        emit.assert_not_called()
        self.assertIn("Verification Required", result.output)
        self.assertIn("What is 7 * 6?", result.output)
        self.assertIn('moltbook verify --code "abc" --solution "<YOUR_ANSWER>"', result.output)
        self.assertNotIn("Post created", result.output)

    def test_verify_submits_code_and_answer(self):
        FakeClient.routes[("POST", "/verify")] = {
            "success": True,
            "post": {"id": "p1", "title": "Hello", "upvotes": 0, "downvotes": 0},
            "message": "Post published",
        }

        result = self.invoke(["verify", "--code", "abc", "--solution", "42"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(FakeClient.calls[-1], ("POST", "/verify", {"verification_code": "abc", "answer": "42"}))
        self.assertIn("Verification Successful!", result.output)
        self.assertIn("Hello", result.output)
        self.assertIn("Post published", result.output)

    def test_already_answered_is_not_a_failure(self):
        FakeClient.routes[("POST", "/verify")] = ApiError(400, "Already answered")

        result = self.invoke(["verify", "-c", "abc", "-s", "42"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Already Verified", result.output)

    def test_rejected_answer_exits_nonzero(self):
        FakeClient.routes[("POST", "/verify")] = {"success": False, "error": "Incorrect answer"}

        result = self.invoke(["verify", "-c", "abc", "-s", "41"])

        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Verification Failed: Incorrect answer", result.output)


class PostCommandTests(CliTestCase):
    def setUp(self):
        super().setUp()
        self.write_credentials()

    def test_positional_arguments_and_url_promotion(self):
        FakeClient.routes[("POST", "/posts")] = {"success": True, "post": {"id": "p42"}}

        result = self.invoke(["post", "Look at this", "tools", "https://example.com"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            FakeClient.calls[-1],
            ("POST", "/posts", {"submolt_name": "tools", "title": "Look at this", "url": "https://example.com"}),
        )
        self.assertIn("Post ID: p42", result.output)

    def test_flags_override_positionals(self):
        self.invoke(["post", "Positional", "-t", "Flagged", "-c", "Body"])

        self.assertEqual(
            FakeClient.calls[-1][2],
            {"submolt_name": "general", "title": "Flagged", "content": "Body"},
        )

    def test_interactive_mode_prompts(self):
        result = self.invoke(["post"], input="Prompted title\n\nSome content\n\n")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            FakeClient.calls[-1][2],
            {"submolt_name": "general", "title": "Prompted title", "content": "Some content"},
        )

    def test_comment_reply_body(self):
        self.invoke(["comment", "p1", "-c", "Nice", "--parent", "c9"])
        self.assertEqual(FakeClient.calls[-1], ("POST", "/posts/p1/comments", {"content": "Nice", "parent_id": "c9"}))

    def test_feed_accepts_bare_array_response(self):
        FakeClient.routes[("GET", "/feed")] = [{"id": "p1", "title": "Bare list", "upvotes": 1, "downvotes": 0}]

        result = self.invoke(["feed", "--sort", "new", "--limit", "5"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(FakeClient.calls[-1], ("GET", "/feed", {"sort": "new", "limit": 5}))
        self.assertIn("#1 Bare list", result.output)

    def test_failed_write_is_reported(self):
        FakeClient.routes[("POST", "/posts/p1/upvote")] = {"success": False, "error": "Post is locked"}

        result = self.invoke(["upvote", "p1"])

        self.assertEqual(result.exit_code, 16)
        self.assertIn("Post is locked", result.output)

    def test_upvote_shows_suggestion(self):
        FakeClient.routes[("POST", "/posts/p1/upvote")] = {"success": True, "suggestion": "Follow the author?"}

        result = self.invoke(["upvote", "p1"])

        self.assertIn("Tip: Follow the author?", result.output)

    def test_search_passes_filters(self):
        FakeClient.routes[("GET", "/search")] = {"results": []}

        result = self.invoke(["search", "shell care", "--type", "comments", "-l", "3"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(FakeClient.calls[-1], ("GET", "/search", {"q": "shell care", "type": "comments", "limit": 3}))
        self.assertIn("No results found.", result.output)


class SubmoltCommandTests(CliTestCase):
    def setUp(self):
        super().setUp()
        self.write_credentials()

    def test_settings_requires_an_option(self):
        result = self.invoke(["submolt-settings", "tools"])

        self.assertEqual(result.exit_code, 2)
        self.assertEqual(FakeClient.calls, [])

    def test_settings_sends_only_given_fields(self):
        self.invoke(["submolt-settings", "tools", "--theme-color", "#ff0000"])
        self.assertEqual(FakeClient.calls[-1], ("PATCH", "/submolts/tools/settings", {"theme_color": "#ff0000"}))

    def test_moderator_commands(self):
        FakeClient.routes[("GET", "/submolts/tools/moderators")] = {
            "moderators": [{"agent_name": "Clawd", "role": "owner"}]
        }

        listed = self.invoke(["submolt-mods", "list", "tools"])
        self.invoke(["submolt-mods", "add", "tools", "Bob"])
        self.invoke(["submolt-mods", "remove", "tools", "Bob"])

        self.assertIn("Clawd (owner)", listed.output)
        self.assertEqual(FakeClient.calls[1], ("POST", "/submolts/tools/moderators", {"agent_name": "Bob", "role": "moderator"}))
        self.assertEqual(FakeClient.calls[2], ("DELETE", "/submolts/tools/moderators/Bob", None))

    def test_pin_and_subscribe(self):
        self.invoke(["pin-post", "p1"])
        self.invoke(["unpin-post", "p1"])
        self.invoke(["subscribe", "tools"])
        self.invoke(["unsubscribe", "tools"])

        self.assertEqual(
            [c[:2] for c in FakeClient.calls],
            [
                ("POST", "/posts/p1/pin"),
                ("DELETE", "/posts/p1/pin"),
                ("POST", "/submolts/tools/subscribe"),
                ("DELETE", "/submolts/tools/subscribe"),
            ],
        )

    def test_create_submolt(self):
        result = self.invoke(["create-submolt", "shell-care", "Shell Care", "-d", "Molting tips"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            FakeClient.calls[-1][2],
            {"name": "shell-care", "display_name": "Shell Care", "description": "Molting tips", "allow_crypto": False},
        )
        self.assertIn("m/shell-care created", result.output)


class DmCommandTests(CliTestCase):
    def setUp(self):
        super().setUp()
        self.write_credentials(agent_name="Clawd")

    def test_dm_read_labels_own_messages(self):
        FakeClient.routes[("GET", "/agents/dm/conversations/conv-1")] = {
            "messages": [
                {"from_agent": {"name": "Clawd"}, "message": "hello there"},
                {"from_agent": {"name": "Bob"}, "message": "hi!"},
            ]
        }

        result = self.invoke(["dm-read", "conv-1"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("You", result.output)
        self.assertIn("Bob", result.output)

    def test_dm_request_by_owner(self):
        self.invoke(["dm-request", "--to", "@human", "--message", "hello", "--by-owner"])
        self.assertEqual(FakeClient.calls[-1], ("POST", "/agents/dm/request", {"to_owner": "@human", "message": "hello"}))

    def test_dm_send_and_reject(self):
        self.invoke(["dm-send", "conv-1", "-m", "ping", "--needs-human"])
        self.invoke(["dm-reject", "conv-2", "--block"])

        self.assertEqual(
            FakeClient.calls[0],
            ("POST", "/agents/dm/conversations/conv-1/send", {"message": "ping", "needs_human_input": True}),
        )
        self.assertEqual(FakeClient.calls[1], ("POST", "/agents/dm/requests/conv-2/reject", {"block": True}))

    def test_dm_list_nested_items(self):
        FakeClient.routes[("GET", "/agents/dm/conversations")] = {
            "conversations": {"items": [{"conversation_id": "conv-1", "with_agent": {"name": "Bob"}, "unread_count": 2}]},
            "total_unread": 2,
        }

        result = self.invoke(["dm-list"])

        self.assertIn("Bob (2 unread)", result.output)
        self.assertIn("moltbook dm-read conv-1", result.output)

    def test_heartbeat_calls_sequentially(self):
        FakeClient.routes[("GET", "/agents/status")] = {"status": "claimed", "agent": {"name": "Clawd"}}
        FakeClient.routes[("GET", "/agents/dm/check")] = {"has_activity": False}
        FakeClient.routes[("GET", "/feed")] = {"posts": []}

        result = self.invoke(["heartbeat"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual([c[1] for c in FakeClient.calls], ["/agents/status", "/agents/dm/check", "/feed"])
        self.assertIn("Claimed", result.output)
        self.assertIn("No new DM activity", result.output)
        self.assertIn("No new posts.", result.output)


class SetupCommandTests(CliTestCase):
    def test_init_with_flags_saves_credentials(self):
        result = self.invoke(["init", "--api-key", "k", "--name", "a"])

        self.assertEqual(result.exit_code, 0, result.output)
        path = self.config_dir / "credentials.json"
        self.assertEqual(json.loads(path.read_text()), {"api_key": "k", "agent_name": "a"})
        if os.name != "nt":
            self.assertEqual(stat.S_IMODE(path.stat().st_mode), 0o600)
        self.assertEqual(FakeClient.calls, [])

    def test_init_existing_key_interactive(self):
        result = self.invoke(["init"], input="existing\nmy-key\nClawd\n")

        self.assertEqual(result.exit_code, 0, result.output)
        saved = json.loads((self.config_dir / "credentials.json").read_text())
        self.assertEqual(saved, {"api_key": "my-key", "agent_name": "Clawd"})

    def test_register_saves_returned_key(self):
        FakeClient.routes[("POST", "/agents/register")] = {
            "success": True,
            "agent": {
                "name": "Clawd",
                "api_key": "moltbook_sk_new",
                "claim_url": "https://www.moltbook.com/claim/xyz",
                "verification_code": "reef-42",
            },
        }

        result = self.invoke(["register", "--name", "Clawd", "--description", "A lobster"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(FakeClient.api_keys, [None])
        self.assertIn("https://www.moltbook.com/claim/xyz", result.output)
        saved = json.loads((self.config_dir / "credentials.json").read_text())
        self.assertEqual(saved, {"api_key": "moltbook_sk_new", "agent_name": "Clawd"})

    def test_register_overwrites_existing_credentials(self):
        self.write_credentials("old", "old")
        FakeClient.routes[("POST", "/agents/register")] = {"agent": {"name": "New", "api_key": "new"}}

        self.invoke(["register", "-n", "New", "-d", ""])

        saved = json.loads((Path(self.config_dir) / "credentials.json").read_text())
        self.assertEqual(saved["api_key"], "new")

    def test_init_json_output_is_one_document(self):
        result = self.invoke(["--output", "json", "init", "--api-key", "k", "--name", "a"])

        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)
        self.assertEqual(payload["command"], "init")
        self.assertEqual(payload["data"]["path"], str(self.config_dir / "credentials.json"))
        self.assertTrue(payload["data"]["created"])

    def test_register_json_output_is_one_document(self):
        self.write_credentials("old", "old")
        FakeClient.routes[("POST", "/agents/register")] = {"agent": {"name": "N", "api_key": "new"}}

        result = self.invoke(["--output", "json", "register", "-n", "N", "-d", ""])

        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)
        self.assertTrue(payload["ok"])
        self.assertEqual(payload["command"], "register")
        self.assertFalse(payload["data"]["created"])
        self.assertEqual(payload["data"]["registration"]["agent"]["name"], "N")
        self.assertNotIn("Configuration saved", result.output)
