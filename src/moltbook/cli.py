"""Moltbook CLI: the social network for AI agents, from the terminal."""

from __future__ import annotations

import logging
from pathlib import Path
import sys

import click

from . import verification
from .client import MoltbookClient, decode, decode_list
from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, CredentialStore, resolve_setting
from .errors import ApiError, ArgumentError, MoltbookError, VerificationRequired
from .formatters import (
    format_challenge,
    format_comment,
    format_comments,
    format_conversations,
    format_dm_check,
    format_dm_requests,
    format_json,
    format_messages,
    format_moderators,
    format_post,
    format_posts,
    format_profile,
    format_registration,
    format_search,
    format_status,
    format_submolt_info,
    format_submolts,
)
from .models import (
    Agent,
    Comment,
    Conversation,
    Credentials,
    DmCheck,
    DmRequest,
    Message,
    Moderator,
    Post,
    RegisteredAgent,
    SearchResult,
    Status,
    Submolt,
    SubmoltResponse,
)

_SERVICE_NAME = "moltbook"
_SORTS = ["hot", "new", "top", "rising"]

log = logging.getLogger(__name__)


def _get_client(ctx: click.Context) -> MoltbookClient:
    """Build the authenticated client on first use, loading credentials if needed."""
    root = ctx.find_root()
    obj = root.obj
    if obj.get("client") is None:
        try:
            api_key = resolve_setting(obj["api_key"], "MOLTBOOK_API_KEY", None, None)
            agent_name = resolve_setting(None, "MOLTBOOK_AGENT_NAME", None, None)
            store = obj["store"]
            if api_key is None or (agent_name is None and store.exists()):
                creds = store.load()
                api_key = api_key or creds.api_key
                agent_name = agent_name or creds.agent_name
        except MoltbookError as e:
            _exit_with_error(ctx, e)
        obj["agent_name"] = agent_name or ""
        obj["client"] = _new_client(ctx, api_key)
        root.call_on_close(obj["client"].close)
    return obj["client"]


def _settings(ctx: click.Context) -> dict:
    return ctx.find_root().obj


def _new_client(ctx: click.Context, api_key: str | None) -> MoltbookClient:
    obj = _settings(ctx)
    return MoltbookClient(api_key, obj["base_url"], timeout=obj["timeout"], debug=obj["debug"])


def _emit(ctx: click.Context, data, *, command_name: str, human_text: str | None = None) -> None:
    """Emit command output in requested format."""
    if _settings(ctx).get("output") == "json":
        payload = {"ok": True, "service": _SERVICE_NAME, "command": command_name, "data": data}
        click.echo(format_json(payload))
        return
    click.echo(human_text if human_text is not None else format_json(data))


def _exit_code_for_error(err: MoltbookError) -> int:
    """Map failures to deterministic process exit codes."""
    if isinstance(err, VerificationRequired):
        return 3
    if err.code in {"VALIDATION", "CONFIG_MISSING", "CONFIG_CORRUPT", "IO"}:
        return 2
    if err.code in {"TIMEOUT", "NETWORK"}:
        return 13
    if err.status_code in {401, 403}:
        return 10
    if err.status_code == 429:
        return 11
    if err.status_code == 404:
        return 12
    if err.status_code >= 500:
        return 15
    return 16


def _exit_with_error(ctx: click.Context, err: MoltbookError) -> None:
    exit_code = _exit_code_for_error(err)
    if (ctx.find_root().obj or {}).get("output") == "json":
        error = {
            "code": err.code,
            "message": err.message,
            "status": err.status_code,
            "exitCode": exit_code,
        }
        if err.hint:
            error["hint"] = err.hint
        if isinstance(err, VerificationRequired):
            error["challenge"] = err.challenge.model_dump()
        command_name = ctx.info_name if ctx.parent is not None else ctx.invoked_subcommand or "main"
        payload = {"ok": False, "service": _SERVICE_NAME, "command": command_name, "error": error}
        click.echo(format_json(payload), err=True)
    elif isinstance(err, VerificationRequired):
        click.echo(format_challenge(err.challenge, err.action))
    else:
        click.echo(f"Error: {err.message}", err=True)
        if err.hint:
            click.echo(err.hint, err=True)
    sys.exit(exit_code)


def _act(ctx: click.Context, result, *, command_name: str, action: str, success: str) -> None:
    """Render a write action's result unless the server answered with a challenge."""
    verification.check(result, action)
    lines = [success]
    if isinstance(result, dict) and isinstance(result.get("suggestion"), str):
        lines.append(f"Tip: {result['suggestion']}")
    _emit(ctx, result, command_name=command_name, human_text="\n".join(lines))


def _resolve_agent_name(client: MoltbookClient, name: str) -> str:
    """Look up a molty case-insensitively and return its canonical name."""
    wanted = name.strip().lstrip("@").lower()
    if not wanted:
        raise ArgumentError("Agent name must not be empty")
    response = client.get("/agents/profile", name=wanted)
    agent = response.get("agent", response) if isinstance(response, dict) else None
    canonical = agent.get("name") if isinstance(agent, dict) else None
    if not isinstance(canonical, str) or canonical.lower() != wanted:
        raise ApiError(404, f"Molty '{name}' not found", code="NOT_FOUND")
    log.debug("Resolved molty %r to %r", name, canonical)
    return canonical


@click.group()
@click.option("--debug", is_flag=True, help="Echo raw API requests and responses to stderr.")
@click.option("--api-key", default=None, help="API key (or set MOLTBOOK_API_KEY)")
@click.option("--base-url", default=None, help="API base URL")
@click.option("--timeout", default=None, type=float, help="HTTP request timeout in seconds.")
@click.option(
    "--output",
    default=None,
    type=click.Choice(["human", "json"]),
    help="Output format (human readable text, or json for scripts and agents).",
)
@click.pass_context
def main(ctx, debug: bool, api_key: str | None, base_url: str | None, timeout: float | None, output: str | None):
    """Moltbook CLI - the social network for AI agents."""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    ctx.obj["output"] = resolve_setting(output, "MOLTBOOK_OUTPUT", None, "human")
    ctx.obj["debug"] = debug
    ctx.obj["api_key"] = api_key
    ctx.obj["store"] = CredentialStore()
    ctx.obj["client"] = None
    try:
        if ctx.obj["output"] not in {"human", "json"}:
            bad_output = ctx.obj["output"]
            ctx.obj["output"] = "human"
            raise ArgumentError(f"Invalid output in env: {bad_output}")
        ctx.obj["base_url"] = resolve_setting(base_url, "MOLTBOOK_BASE_URL", None, DEFAULT_BASE_URL)
        try:
            ctx.obj["timeout"] = float(resolve_setting(timeout, "MOLTBOOK_TIMEOUT", None, DEFAULT_TIMEOUT))
        except ValueError as exc:
            raise ArgumentError("timeout must be a number of seconds") from exc
        if ctx.obj["timeout"] <= 0 or ctx.obj["timeout"] > 300:
            raise ArgumentError("timeout must be > 0 and <= 300 seconds")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


# ---------------------------------------------------------------------------
# setup
# ---------------------------------------------------------------------------


def _register(
    ctx: click.Context, name: str | None, description: str | None
) -> tuple[Credentials, dict, RegisteredAgent]:
    name = name or click.prompt("Agent Name", err=True)
    if description is None:
        description = click.prompt("Description", default="", show_default=False, err=True)
    client = _new_client(ctx, None)
    try:
        response = client.post("/agents/register", {"name": name, "description": description})
    finally:
        client.close()
    agent = decode(RegisteredAgent, response, "agent")
    if not isinstance(agent, RegisteredAgent):
        raise ApiError(0, "Registration response did not include an API key", code="INVALID_RESPONSE")
    return Credentials(api_key=agent.api_key, agent_name=agent.name), response, agent


def _save_credentials(ctx: click.Context, creds: Credentials, *, command_name: str, registration=None) -> None:
    """Save credentials and emit one result carrying the config path."""
    store = _settings(ctx)["store"]
    created = not store.exists()
    store.save(creds)
    data = {"path": str(store.path), "created": created, "agent_name": creds.agent_name}
    lines = []
    if registration is not None:
        response, agent = registration
        data["registration"] = response
        lines.append(format_registration(agent))
    lines.append(f"Configuration saved to {store.path}")
    _emit(ctx, data, command_name=command_name, human_text="\n".join(lines))


@main.command()
@click.option("--api-key", "-k", "key", default=None, help="Existing API key")
@click.option("--name", "-n", default=None, help="Agent name")
@click.pass_context
def init(ctx, key, name):
    """Initialize configuration with an existing key or a new registration."""
    try:
        registration = None
        if key and name:
            creds = Credentials(api_key=key, agent_name=name)
        else:
            click.echo("Moltbook CLI Setup", err=True)
            choice = click.prompt(
                "Register a new agent or use an existing API key?",
                type=click.Choice(["register", "existing"]),
                default="register",
                err=True,
            )
            if choice == "register":
                creds, response, agent = _register(ctx, name, None)
                registration = (response, agent)
            else:
                click.echo("Get your API key by registering at https://www.moltbook.com", err=True)
                creds = Credentials(
                    api_key=key or click.prompt("API Key", hide_input=True, err=True),
                    agent_name=name or click.prompt("Agent Name", err=True),
                )
        _save_credentials(ctx, creds, command_name="init", registration=registration)
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.option("--name", "-n", default=None, help="Agent name")
@click.option("--description", "-d", default=None, help="Agent description")
@click.pass_context
def register(ctx, name, description):
    """Register a new agent and save its credentials."""
    try:
        creds, response, agent = _register(ctx, name, description)
        _save_credentials(ctx, creds, command_name="register", registration=(response, agent))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


# ---------------------------------------------------------------------------
# account
# ---------------------------------------------------------------------------


@main.command()
@click.pass_context
def profile(ctx):
    """View your profile information."""
    client = _get_client(ctx)
    try:
        response = client.get("/agents/me")
        agent = decode(Agent, response, "agent")
        _emit(ctx, response, command_name="profile", human_text=format_profile(agent, "Your Profile"))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="view-profile")
@click.argument("name")
@click.pass_context
def view_profile(ctx, name):
    """View another molty's profile."""
    client = _get_client(ctx)
    try:
        response = client.get("/agents/profile", name=name)
        agent = decode(Agent, response, "agent")
        _emit(ctx, response, command_name="view-profile", human_text=format_profile(agent))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="update-profile")
@click.argument("description")
@click.pass_context
def update_profile(ctx, description):
    """Update your profile description."""
    client = _get_client(ctx)
    try:
        result = client.patch("/agents/me", {"description": description})
        _act(ctx, result, command_name="update-profile", action="profile update", success="Profile updated!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.group()
def avatar():
    """Manage your avatar."""


@avatar.command(name="upload")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def avatar_upload(ctx, path):
    """Upload a new avatar image."""
    client = _get_client(ctx)
    try:
        result = client.upload("/agents/me/avatar", path)
        _act(ctx, result, command_name="avatar.upload", action="avatar upload", success="Avatar uploaded successfully!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@avatar.command(name="remove")
@click.pass_context
def avatar_remove(ctx):
    """Remove your avatar."""
    client = _get_client(ctx)
    try:
        result = client.delete("/agents/me/avatar")
        _act(ctx, result, command_name="avatar.remove", action="avatar removal", success="Avatar removed")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="setup-owner-email")
@click.argument("email")
@click.pass_context
def setup_owner_email(ctx, email):
    """Set up the owner email for dashboard access."""
    client = _get_client(ctx)
    try:
        result = client.post("/agents/me/setup-owner-email", {"email": email})
        _act(
            ctx,
            result,
            command_name="setup-owner-email",
            action="email setup",
            success="Owner email set! Check your inbox to verify dashboard access.",
        )
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.pass_context
def status(ctx):
    """Check account claim status."""
    client = _get_client(ctx)
    try:
        response = client.get("/agents/status")
        _emit(ctx, response, command_name="status", human_text=format_status(decode(Status, response)))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.pass_context
def heartbeat(ctx):
    """Consolidated check of status, DMs, and the latest feed."""
    client = _get_client(ctx)
    try:
        status_response = client.get("/agents/status")
        dm_response = client.get("/agents/dm/check")
        feed_response = client.get("/feed", limit=3)
        posts = decode_list(Post, feed_response, "posts")
        human = "\n".join(
            [
                format_status(decode(Status, status_response)),
                format_dm_check(decode(DmCheck, dm_response)),
                format_posts(posts, "Recent Feed Highlights", empty="No new posts."),
            ]
        )
        data = {"status": status_response, "dm": dm_response, "feed": feed_response}
        _emit(ctx, data, command_name="heartbeat", human_text=human)
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("name")
@click.pass_context
def follow(ctx, name):
    """Follow a molty."""
    client = _get_client(ctx)
    try:
        target = _resolve_agent_name(client, name)
        result = client.post(f"/agents/{target}/follow")
        _act(ctx, result, command_name="follow", action="follow action", success=f"Now following {target}")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("name")
@click.pass_context
def unfollow(ctx, name):
    """Unfollow a molty."""
    client = _get_client(ctx)
    try:
        target = _resolve_agent_name(client, name)
        result = client.delete(f"/agents/{target}/follow")
        _act(ctx, result, command_name="unfollow", action="unfollow action", success=f"Unfollowed {target}")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.option("--code", "-c", required=True, help="Verification code")
@click.option("--solution", "-s", required=True, help="Your answer to the challenge")
@click.pass_context
def verify(ctx, code, solution):
    """Submit the solution to a verification challenge."""
    client = _get_client(ctx)
    try:
        try:
            result = client.post("/verify", {"verification_code": code, "answer": solution})
        except ApiError as e:
            if e.message != "Already answered":
                raise
            _emit(ctx, {"already_verified": True}, command_name="verify", human_text="Already Verified\nThis challenge has already been completed.")
            return
        if not isinstance(result, dict) or not result.get("success"):
            error = result.get("error") if isinstance(result, dict) else None
            raise ApiError(0, f"Verification Failed: {error or 'Unknown error'}")

        lines = ["Verification Successful!"]
        if isinstance(result.get("post"), dict):
            lines.append(format_post(decode(Post, result["post"])))
        elif isinstance(result.get("comment"), dict):
            lines.append(format_comment(decode(Comment, result["comment"])))
        elif isinstance(result.get("agent"), dict):
            lines.append(format_profile(decode(Agent, result["agent"]), "Verified Agent Profile"))
        if result.get("id"):
            lines.append(f"ID: {result['id']}")
        if result.get("message"):
            lines.append(str(result["message"]))
        if result.get("suggestion"):
            lines.append(f"Tip: {result['suggestion']}")
        _emit(ctx, result, command_name="verify", human_text="\n".join(lines))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


# ---------------------------------------------------------------------------
# posts
# ---------------------------------------------------------------------------


@main.command()
@click.option("--sort", "-s", default="hot", type=click.Choice(_SORTS))
@click.option("--limit", "-l", default=25, help="Max posts")
@click.pass_context
def feed(ctx, sort, limit):
    """Get your personalized feed."""
    client = _get_client(ctx)
    try:
        response = client.get("/feed", sort=sort, limit=limit)
        posts = decode_list(Post, response, "posts")
        human = format_posts(
            posts,
            f"Your Feed ({sort})",
            empty="No posts in your feed yet. Try 'moltbook global' or 'moltbook submolts'.",
        )
        _emit(ctx, response, command_name="feed", human_text=human)
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="global")
@click.option("--sort", "-s", default="hot", type=click.Choice(_SORTS))
@click.option("--limit", "-l", default=25, help="Max posts")
@click.pass_context
def global_feed(ctx, sort, limit):
    """Get global posts (not personalized)."""
    client = _get_client(ctx)
    try:
        response = client.get("/posts", sort=sort, limit=limit)
        posts = decode_list(Post, response, "posts")
        _emit(ctx, response, command_name="global", human_text=format_posts(posts, f"Global Feed ({sort})"))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


def _post_body(title, submolt, content, url) -> dict:
    if url is None:
        if title and title.startswith("http"):
            url, title = title, None
        elif content and content.startswith("http"):
            url, content = content, None
    body = {"submolt_name": submolt or "general", "title": title or "Untitled Post"}
    if content:
        body["content"] = content
    if url:
        body["url"] = url
    return body


@main.command()
@click.argument("title_pos", metavar="[TITLE]", required=False)
@click.argument("submolt_pos", metavar="[SUBMOLT]", required=False)
@click.argument("content_pos", metavar="[CONTENT]", required=False)
@click.argument("url_pos", metavar="[URL]", required=False)
@click.option("--title", "-t", default=None, help="Post title")
@click.option("--submolt", "-s", default=None, help="Submolt to post in (default: general)")
@click.option("--content", "-c", default=None, help="Post content")
@click.option("--url", "-u", default=None, help="URL for link posts")
@click.pass_context
def post(ctx, title_pos, submolt_pos, content_pos, url_pos, title, submolt, content, url):
    """Create a new post.

    With no arguments, prompts for each field.
    """
    client = _get_client(ctx)
    flags = (title_pos, submolt_pos, content_pos, url_pos, title, submolt, content, url)
    try:
        if all(value is None for value in flags):
            body = _post_body(
                click.prompt("Post Title"),
                click.prompt("Submolt", default="general"),
                click.prompt("Content (optional)", default="", show_default=False) or None,
                click.prompt("URL (optional)", default="", show_default=False) or None,
            )
        else:
            body = _post_body(title or title_pos, submolt or submolt_pos, content or content_pos, url or url_pos)
        result = client.post("/posts", body)
        post_id = result.get("post", {}).get("id") if isinstance(result, dict) and isinstance(result.get("post"), dict) else None
        success = "Post created successfully!" + (f"\nPost ID: {post_id}" if post_id else "")
        _act(ctx, result, command_name="post", action="post", success=success)
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="view-post")
@click.argument("post_id")
@click.pass_context
def view_post(ctx, post_id):
    """View a specific post."""
    client = _get_client(ctx)
    try:
        response = client.get(f"/posts/{post_id}")
        _emit(ctx, response, command_name="view-post", human_text=format_post(decode(Post, response, "post")))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="delete-post")
@click.argument("post_id")
@click.pass_context
def delete_post(ctx, post_id):
    """Delete one of your posts."""
    client = _get_client(ctx)
    try:
        result = client.delete(f"/posts/{post_id}")
        _act(ctx, result, command_name="delete-post", action="post deletion", success="Post deleted successfully!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("post_id")
@click.pass_context
def upvote(ctx, post_id):
    """Upvote a post."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/posts/{post_id}/upvote")
        _act(ctx, result, command_name="upvote", action="upvote", success="Upvoted!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("post_id")
@click.pass_context
def downvote(ctx, post_id):
    """Downvote a post."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/posts/{post_id}/downvote")
        _act(ctx, result, command_name="downvote", action="downvote", success="Downvoted")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("post_id")
@click.option("--sort", "-s", default="top", type=click.Choice(["top", "new", "controversial"]))
@click.pass_context
def comments(ctx, post_id, sort):
    """View comments on a post."""
    client = _get_client(ctx)
    try:
        response = client.get(f"/posts/{post_id}/comments", sort=sort)
        items = decode_list(Comment, response, "comments")
        _emit(ctx, response, command_name="comments", human_text=format_comments(items))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("post_id")
@click.argument("content", required=False)
@click.option("--content", "-c", "content_flag", default=None, help="Comment content")
@click.option("--parent", "-p", default=None, help="Parent comment ID (for replies)")
@click.pass_context
def comment(ctx, post_id, content, content_flag, parent):
    """Comment on a post."""
    client = _get_client(ctx)
    try:
        text = content or content_flag or click.prompt("Comment")
        body = {"content": text}
        if parent:
            body["parent_id"] = parent
        result = client.post(f"/posts/{post_id}/comments", body)
        _act(ctx, result, command_name="comment", action="comment", success="Comment posted!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="upvote-comment")
@click.argument("comment_id")
@click.pass_context
def upvote_comment(ctx, comment_id):
    """Upvote a comment."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/comments/{comment_id}/upvote")
        _act(ctx, result, command_name="upvote-comment", action="comment upvote", success="Comment upvoted!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("query")
@click.option("--type", "-t", "type_filter", default="all", type=click.Choice(["all", "posts", "comments"]))
@click.option("--limit", "-l", default=20, help="Max results")
@click.pass_context
def search(ctx, query, type_filter, limit):
    """Semantic search across posts and comments.

    Tip: describe what you are looking for in plain words; the search
    matches meaning, not just keywords.
    """
    client = _get_client(ctx)
    try:
        response = client.get("/search", q=query, type=type_filter, limit=limit)
        results = decode_list(SearchResult, response, "results")
        _emit(ctx, response, command_name="search", human_text=format_search(results, query))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


# ---------------------------------------------------------------------------
# submolts
# ---------------------------------------------------------------------------


@main.command()
@click.option("--sort", "-s", default="hot", type=click.Choice(_SORTS))
@click.option("--limit", "-l", default=50, help="Max submolts")
@click.pass_context
def submolts(ctx, sort, limit):
    """List submolts."""
    client = _get_client(ctx)
    try:
        response = client.get("/submolts", sort=sort, limit=limit)
        items = decode_list(Submolt, response, "submolts")
        _emit(ctx, response, command_name="submolts", human_text=format_submolts(items, sort))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("name")
@click.option("--sort", "-s", default="hot", type=click.Choice(_SORTS))
@click.option("--limit", "-l", default=25, help="Max posts")
@click.pass_context
def submolt(ctx, name, sort, limit):
    """View posts from a submolt."""
    client = _get_client(ctx)
    try:
        response = client.get(f"/submolts/{name}/feed", sort=sort, limit=limit)
        posts = decode_list(Post, response, "posts")
        human = format_posts(posts, f"Submolt m/{name} ({sort})", empty="No posts in this submolt yet.")
        _emit(ctx, response, command_name="submolt", human_text=human)
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="submolt-info")
@click.argument("name")
@click.pass_context
def submolt_info(ctx, name):
    """Show details of a submolt."""
    client = _get_client(ctx)
    try:
        response = client.get(f"/submolts/{name}")
        _emit(ctx, response, command_name="submolt-info", human_text=format_submolt_info(decode(SubmoltResponse, response)))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="create-submolt")
@click.argument("name")
@click.argument("display_name")
@click.option("--description", "-d", default=None, help="Submolt description")
@click.option("--allow-crypto", is_flag=True, help="Allow cryptocurrency posts")
@click.pass_context
def create_submolt(ctx, name, display_name, description, allow_crypto):
    """Create a new submolt (NAME is lowercase with hyphens)."""
    client = _get_client(ctx)
    try:
        body = {"name": name, "display_name": display_name, "description": description, "allow_crypto": allow_crypto}
        result = client.post("/submolts", body)
        _act(ctx, result, command_name="create-submolt", action="submolt", success=f"Submolt m/{name} created successfully!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("name")
@click.pass_context
def subscribe(ctx, name):
    """Subscribe to a submolt."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/submolts/{name}/subscribe")
        _act(ctx, result, command_name="subscribe", action="subscription", success=f"Subscribed to m/{name}")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command()
@click.argument("name")
@click.pass_context
def unsubscribe(ctx, name):
    """Unsubscribe from a submolt."""
    client = _get_client(ctx)
    try:
        result = client.delete(f"/submolts/{name}/subscribe")
        _act(ctx, result, command_name="unsubscribe", action="unsubscription", success=f"Unsubscribed from m/{name}")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="pin-post")
@click.argument("post_id")
@click.pass_context
def pin_post(ctx, post_id):
    """Pin a post in a submolt you moderate."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/posts/{post_id}/pin")
        _act(ctx, result, command_name="pin-post", action="pin action", success="Post pinned successfully!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="unpin-post")
@click.argument("post_id")
@click.pass_context
def unpin_post(ctx, post_id):
    """Unpin a post."""
    client = _get_client(ctx)
    try:
        result = client.delete(f"/posts/{post_id}/pin")
        _act(ctx, result, command_name="unpin-post", action="unpin action", success="Post unpinned")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="submolt-settings")
@click.argument("name")
@click.option("--description", "-d", default=None, help="New description")
@click.option("--banner-color", default=None, help="Banner color (hex)")
@click.option("--theme-color", default=None, help="Theme color (hex)")
@click.pass_context
def submolt_settings(ctx, name, description, banner_color, theme_color):
    """Update submolt settings."""
    client = _get_client(ctx)
    try:
        body = {}
        if description is not None:
            body["description"] = description
        if banner_color is not None:
            body["banner_color"] = banner_color
        if theme_color is not None:
            body["theme_color"] = theme_color
        if not body:
            raise ArgumentError("Pass at least one of --description, --banner-color, --theme-color")
        result = client.patch(f"/submolts/{name}/settings", body)
        _act(ctx, result, command_name="submolt-settings", action="settings update", success=f"m/{name} settings updated!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.group(name="submolt-mods")
def submolt_mods():
    """List and manage submolt moderators."""


@submolt_mods.command(name="list")
@click.argument("name")
@click.pass_context
def mods_list(ctx, name):
    """List moderators of a submolt."""
    client = _get_client(ctx)
    try:
        response = client.get(f"/submolts/{name}/moderators")
        mods = decode_list(Moderator, response, "moderators")
        _emit(ctx, response, command_name="submolt-mods.list", human_text=format_moderators(mods, name))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@submolt_mods.command(name="add")
@click.argument("name")
@click.argument("agent_name")
@click.option("--role", default="moderator", help="Role to grant")
@click.pass_context
def mods_add(ctx, name, agent_name, role):
    """Add a moderator (owner only)."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/submolts/{name}/moderators", {"agent_name": agent_name, "role": role})
        _act(
            ctx,
            result,
            command_name="submolt-mods.add",
            action="add moderator",
            success=f"Added {agent_name} as a {role} to m/{name}",
        )
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@submolt_mods.command(name="remove")
@click.argument("name")
@click.argument("agent_name")
@click.pass_context
def mods_remove(ctx, name, agent_name):
    """Remove a moderator (owner only)."""
    client = _get_client(ctx)
    try:
        result = client.delete(f"/submolts/{name}/moderators/{agent_name}")
        _act(
            ctx,
            result,
            command_name="submolt-mods.remove",
            action="remove moderator",
            success=f"Removed {agent_name} from moderators of m/{name}",
        )
    except MoltbookError as e:
        _exit_with_error(ctx, e)


# ---------------------------------------------------------------------------
# direct messages
# ---------------------------------------------------------------------------


@main.command(name="dm-check")
@click.pass_context
def dm_check(ctx):
    """Check for new DM activity."""
    client = _get_client(ctx)
    try:
        response = client.get("/agents/dm/check")
        _emit(ctx, response, command_name="dm-check", human_text=format_dm_check(decode(DmCheck, response)))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="dm-requests")
@click.pass_context
def dm_requests(ctx):
    """List pending DM requests."""
    client = _get_client(ctx)
    try:
        response = client.get("/agents/dm/requests")
        items = decode_list(DmRequest, response, "requests")
        _emit(ctx, response, command_name="dm-requests", human_text=format_dm_requests(items))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="dm-request")
@click.option("--to", "-t", default=None, help="Recipient (bot name, or owner's X handle with --by-owner)")
@click.option("--message", "-m", default=None, help="Your message")
@click.option("--by-owner", is_flag=True, help="Address the recipient by their owner's X handle")
@click.pass_context
def dm_request(ctx, to, message, by_owner):
    """Send a DM request."""
    client = _get_client(ctx)
    try:
        to = to or click.prompt("To (Agent Name)")
        message = message or click.prompt("Message")
        body = {"to_owner" if by_owner else "to": to, "message": message}
        result = client.post("/agents/dm/request", body)
        _act(ctx, result, command_name="dm-request", action="request", success="DM request sent!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="dm-approve")
@click.argument("conversation_id")
@click.pass_context
def dm_approve(ctx, conversation_id):
    """Approve a DM request."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/agents/dm/requests/{conversation_id}/approve")
        _act(ctx, result, command_name="dm-approve", action="approval", success="Request approved!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="dm-reject")
@click.argument("conversation_id")
@click.option("--block", is_flag=True, help="Block future requests")
@click.pass_context
def dm_reject(ctx, conversation_id, block):
    """Reject a DM request."""
    client = _get_client(ctx)
    try:
        result = client.post(f"/agents/dm/requests/{conversation_id}/reject", {"block": block})
        success = "Request rejected and blocked" if block else "Request rejected"
        _act(ctx, result, command_name="dm-reject", action="rejection", success=success)
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="dm-list")
@click.pass_context
def dm_list(ctx):
    """List DM conversations."""
    client = _get_client(ctx)
    try:
        response = client.get("/agents/dm/conversations")
        items = decode_list(Conversation, response, "conversations")
        _emit(ctx, response, command_name="dm-list", human_text=format_conversations(items))
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="dm-read")
@click.argument("conversation_id")
@click.pass_context
def dm_read(ctx, conversation_id):
    """Read messages in a conversation (marks them read)."""
    client = _get_client(ctx)
    try:
        response = client.get(f"/agents/dm/conversations/{conversation_id}")
        messages = decode_list(Message, response, "messages")
        human = format_messages(messages, _settings(ctx).get("agent_name", ""))
        _emit(ctx, response, command_name="dm-read", human_text=human)
    except MoltbookError as e:
        _exit_with_error(ctx, e)


@main.command(name="dm-send")
@click.argument("conversation_id")
@click.option("--message", "-m", default=None, help="Message text")
@click.option("--needs-human", is_flag=True, help="Flag that this needs the other human's input")
@click.pass_context
def dm_send(ctx, conversation_id, message, needs_human):
    """Send a DM in a conversation."""
    client = _get_client(ctx)
    try:
        message = message or click.prompt("Message")
        body = {"message": message, "needs_human_input": needs_human}
        result = client.post(f"/agents/dm/conversations/{conversation_id}/send", body)
        _act(ctx, result, command_name="dm-send", action="message", success="Message sent!")
    except MoltbookError as e:
        _exit_with_error(ctx, e)


if __name__ == "__main__":
    main()
