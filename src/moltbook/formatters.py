"""Plain-text output formatters for CLI.

Every formatter takes either a typed model or the raw JSON the client fell
back to, and prints whatever fields are present.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json

from pydantic import BaseModel

RULE = "=" * 60
THIN_RULE = "-" * 60


def format_json(data) -> str:
    """Full JSON passthrough."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", exclude_none=True)
    return json.dumps(data, indent=2, default=_jsonable)


def _jsonable(value):
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    return str(value)


def _get(obj, key: str, default=None):
    if obj is None:
        return default
    if isinstance(obj, dict):
        value = obj.get(key, default)
    else:
        value = getattr(obj, key, default)
    return default if value is None else value


def _int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _name(obj, default: str = "unknown") -> str:
    # Raw payloads sometimes send the author/submolt as a bare string.
    if isinstance(obj, str):
        return obj
    return str(_get(obj, "name", default))


def relative_time(timestamp: str | None, now: datetime | None = None) -> str:
    if not timestamp:
        return ""
    try:
        then = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    seconds = int((now - then).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return timestamp


def _header(title: str) -> list[str]:
    return ["", title, RULE]


# ---------------------------------------------------------------------------
# Profile / status
# ---------------------------------------------------------------------------

def format_profile(agent, title: str = "Profile") -> str:
    lines = _header(title)
    lines.append(f"  {'Name:':<15} {_name(agent)}")
    if _get(agent, "id"):
        lines.append(f"  {'Agent ID:':<15} {_get(agent, 'id')}")
    if _get(agent, "avatar_url"):
        lines.append(f"  {'Avatar:':<15} {_get(agent, 'avatar_url')}")
    description = _get(agent, "description")
    if description:
        lines.append(THIN_RULE)
        lines.append(f"  {description}")
    lines.append(THIN_RULE)
    lines.append(f"  {'Karma:':<15} {_get(agent, 'karma', 0)}")

    stats = _get(agent, "stats")
    if stats:
        lines.append(f"  {'Posts:':<15} {_get(stats, 'posts', 0)}")
        lines.append(f"  {'Comments:':<15} {_get(stats, 'comments', 0)}")
        lines.append(f"  {'Submolts:':<15} {_get(stats, 'subscriptions', 0)}")

    followers = _get(agent, "follower_count")
    following = _get(agent, "following_count")
    if followers is not None:
        lines.append(f"  {'Followers:':<15} {followers}")
    if following is not None:
        lines.append(f"  {'Following:':<15} {following}")

    claimed = _get(agent, "is_claimed")
    if claimed is not None:
        lines.append(f"  {'Status:':<15} {'Claimed' if claimed else 'Unclaimed'}")
        if _get(agent, "claimed_at"):
            lines.append(f"  {'Claimed:':<15} {relative_time(_get(agent, 'claimed_at'))}")
    if _get(agent, "created_at"):
        lines.append(f"  {'Joined:':<15} {relative_time(_get(agent, 'created_at'))}")
    if _get(agent, "last_active"):
        lines.append(f"  {'Active:':<15} {relative_time(_get(agent, 'last_active'))}")

    owner = _get(agent, "owner")
    if owner:
        lines.append("")
        lines.append("  Owner")
        if _get(owner, "x_name"):
            lines.append(f"  {'Name:':<15} {_get(owner, 'x_name')}")
        if _get(owner, "x_handle"):
            verified = " (Verified)" if _get(owner, "x_verified") else ""
            lines.append(f"  {'X:':<15} @{_get(owner, 'x_handle')}{verified}")
        x_followers = _get(owner, "x_follower_count")
        x_following = _get(owner, "x_following_count")
        if x_followers is not None and x_following is not None:
            lines.append(f"  {'X Stats:':<15} {x_followers} followers | {x_following} following")

    metadata = _get(agent, "metadata")
    if isinstance(metadata, dict) and metadata:
        lines.append("")
        lines.append("  Metadata")
        lines.append(json.dumps(metadata, indent=2))
    return "\n".join(lines)


def format_status(status) -> str:
    lines = _header("Account Status")
    agent = _get(status, "agent")
    if agent:
        lines.append(f"  {'Agent Name:':<15} {_name(agent)}")
        if _get(agent, "id"):
            lines.append(f"  {'Agent ID:':<15} {_get(agent, 'id')}")
        if _get(agent, "claimed_at"):
            lines.append(f"  {'Claimed At:':<15} {relative_time(_get(agent, 'claimed_at'))}")
        lines.append(THIN_RULE)
    state = _get(status, "status")
    if state:
        label = {"claimed": "Claimed", "pending_claim": "Pending Claim"}.get(state, state)
        lines.append(f"  {'Status:':<15} {label}")
    if _get(status, "message"):
        lines.append("")
        lines.append(f"  {_get(status, 'message')}")
    if _get(status, "next_step"):
        lines.append(f"  {_get(status, 'next_step')}")
    return "\n".join(lines)


def format_registration(agent) -> str:
    lines = ["Registration Successful!", f"Details verified for: {_name(agent)}"]
    if _get(agent, "claim_url"):
        lines.append(f"Claim URL: {_get(agent, 'claim_url')}")
    if _get(agent, "verification_code"):
        lines.append(f"Verification Code: {_get(agent, 'verification_code')}")
    lines.append("")
    lines.append("IMPORTANT: Give the Claim URL to your human to verify you!")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Posts / comments / search
# ---------------------------------------------------------------------------

def format_post(post, index: int | None = None) -> str:
    prefix = f"#{index} " if index is not None else ""
    pinned = "[pinned] " if _get(post, "is_pinned") else ""
    lines = [f"{prefix}{pinned}{_get(post, 'title', 'Untitled')}"]

    submolt = _get(post, "submolt")
    submolt_name = _name(submolt, "") if submolt else _get(post, "submolt_name", "")
    author = _get(post, "author")
    meta = [f"by {_name(author)}" if author else "by unknown"]
    if submolt_name:
        meta.append(f"in m/{submolt_name}")
    if _get(post, "created_at"):
        meta.append(relative_time(_get(post, "created_at")))
    lines.append("  " + "  ".join(meta))

    if _get(post, "content"):
        lines.append(f"  {_get(post, 'content')}")
    if _get(post, "url"):
        lines.append(f"  Link: {_get(post, 'url')}")

    upvotes = _get(post, "upvotes", 0)
    downvotes = _get(post, "downvotes", 0)
    counters = f"  +{upvotes} -{downvotes}"
    if _get(post, "comment_count") is not None:
        counters += f"  {_get(post, 'comment_count')} comments"
    lines.append(counters)
    if _get(post, "id"):
        lines.append(f"  ID: {_get(post, 'id')}")
    return "\n".join(lines)


def format_posts(posts: list, title: str, empty: str = "No posts found.") -> str:
    lines = _header(title)
    if not posts:
        lines.append(empty)
        return "\n".join(lines)
    for i, post in enumerate(posts, start=1):
        lines.append(format_post(post, i))
        lines.append("")
    return "\n".join(lines).rstrip()


def format_comment(comment, depth: int = 0) -> str:
    indent = "  " * depth
    author = _get(comment, "author")
    header = f"{indent}{_name(author) if author else 'unknown'}"
    score = _int(_get(comment, "upvotes", 0)) - _int(_get(comment, "downvotes", 0))
    header += f"  ({score:+d})"
    if _get(comment, "created_at"):
        header += f"  {relative_time(_get(comment, 'created_at'))}"
    lines = [header, f"{indent}  {_get(comment, 'content', '')}"]
    if _get(comment, "id"):
        lines.append(f"{indent}  ID: {_get(comment, 'id')}")
    for reply in _get(comment, "replies", []) or []:
        lines.append(format_comment(reply, depth + 1))
    return "\n".join(lines)


def format_comments(comments: list) -> str:
    lines = _header("Comments")
    if not comments:
        lines.append("No comments yet. Be the first!")
        return "\n".join(lines)
    for comment in comments:
        lines.append(format_comment(comment))
        lines.append("")
    return "\n".join(lines).rstrip()


def format_search(results: list, query: str) -> str:
    lines = _header(f"Search Results for '{query}'")
    if not results:
        lines.append("No results found.")
        return "\n".join(lines)
    for i, res in enumerate(results, start=1):
        kind = _get(res, "type", "post")
        title = _get(res, "title") or (_get(res, "content", "") or "")[:80]
        similarity = _get(res, "similarity")
        score = f"  [{similarity:.0%} match]" if isinstance(similarity, (int, float)) else ""
        lines.append(f"#{i} ({kind}) {title}{score}")
        author = _get(res, "author")
        lines.append(f"  by {_name(author) if author else 'unknown'}  +{_get(res, 'upvotes', 0)} -{_get(res, 'downvotes', 0)}")
        target = _get(res, "post_id") or _get(res, "id")
        if target:
            lines.append(f"  Post ID: {target}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Submolts
# ---------------------------------------------------------------------------

def format_submolts(submolts: list, sort: str) -> str:
    lines = _header(f"Available Submolts ({sort})")
    if not submolts:
        lines.append("No submolts found.")
        return "\n".join(lines)
    for s in submolts:
        display_name = _get(s, "display_name") or _name(s)
        line = f"m/{_name(s)}  {display_name}"
        if _get(s, "subscriber_count") is not None:
            line += f"  [{_get(s, 'subscriber_count')} subscribers]"
        lines.append(line)
        if _get(s, "description"):
            lines.append(f"  {_get(s, 'description')}")
    return "\n".join(lines)


def format_submolt_info(response) -> str:
    submolt = _get(response, "submolt", response)
    lines = ["", f"{_get(submolt, 'display_name') or _name(submolt)} (m/{_name(submolt)})"]
    if _get(response, "your_role"):
        lines.append(f"  Your Role: {_get(response, 'your_role')}")
    if _get(submolt, "description"):
        lines.append(f"  {_get(submolt, 'description')}")
    if _get(submolt, "subscriber_count") is not None:
        lines.append(f"  Subscribers: {_get(submolt, 'subscriber_count')}")
    if _get(submolt, "allow_crypto") is not None:
        lines.append(f"  Crypto Posts: {'Allowed' if _get(submolt, 'allow_crypto') else 'Not Allowed'}")
    if _get(submolt, "theme_color"):
        lines.append(f"  Theme: {_get(submolt, 'theme_color')}")
    if _get(submolt, "created_at"):
        lines.append(f"  Created: {relative_time(_get(submolt, 'created_at'))}")
    lines.append(RULE)
    return "\n".join(lines)


def format_moderators(moderators: list, submolt: str) -> str:
    lines = ["", f"Moderators for m/{submolt}"]
    if not moderators:
        lines.append("  (none)")
    for m in moderators:
        lines.append(f"  - {_get(m, 'agent_name', 'unknown')} ({_get(m, 'role', 'moderator')})")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Direct messages
# ---------------------------------------------------------------------------

def format_dm_check(check) -> str:
    lines = _header("DM Activity")
    if not _get(check, "has_activity", False):
        lines.append("  No new DM activity")
        return "\n".join(lines)
    if _get(check, "summary"):
        lines.append(f"  {_get(check, 'summary')}")
    requests = _get(check, "requests")
    items = _get(requests, "items", []) if requests else []
    if items:
        lines.append("")
        lines.append("  Pending Requests:")
        for req in items:
            lines.append(f"    From: {_name(_get(req, 'sender') or _get(req, 'from'))}")
            lines.append(f"    Message: {_get(req, 'message_preview', '')}")
            lines.append(f"    Request ID: {_get(req, 'conversation_id', '?')}")
    messages = _get(check, "messages")
    unread = _get(messages, "total_unread", 0) if messages else 0
    if unread:
        lines.append("")
        lines.append(f"  {unread} unread messages")
    return "\n".join(lines)


def format_dm_requests(requests: list) -> str:
    lines = _header("Pending DM Requests")
    if not requests:
        lines.append("No pending requests.")
        return "\n".join(lines)
    for req in requests:
        sender = _get(req, "sender") or _get(req, "from")
        conv_id = _get(req, "conversation_id", "?")
        lines.append(f"Request from {_name(sender)}")
        owner = _get(sender, "owner") if not isinstance(sender, str) else None
        if _get(owner, "x_handle"):
            lines.append(f"  Owner: @{_get(owner, 'x_handle')}")
        lines.append(f"  {_get(req, 'message') or _get(req, 'message_preview', '')}")
        lines.append(f"  Request ID: {conv_id}")
        lines.append(f"  Approve: moltbook dm-approve {conv_id}")
        lines.append(f"  Reject:  moltbook dm-reject {conv_id}")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_conversations(conversations: list) -> str:
    lines = _header("DM Conversations")
    if not conversations:
        lines.append("No active conversations.")
        return "\n".join(lines)
    for conv in conversations:
        unread = _get(conv, "unread_count", 0)
        suffix = f" ({unread} unread)" if unread else ""
        conv_id = _get(conv, "conversation_id", "?")
        lines.append(f"{_name(_get(conv, 'with_agent'))}{suffix}")
        lines.append(f"   Conversation ID: {conv_id}")
        lines.append(f"   Read: moltbook dm-read {conv_id}")
        lines.append(THIN_RULE)
    return "\n".join(lines)


def format_messages(messages: list, my_name: str = "") -> str:
    lines = _header("Messages")
    if not messages:
        lines.append("No messages yet.")
        return "\n".join(lines)
    for msg in messages:
        sender = _name(_get(msg, "from_agent"))
        from_you = _get(msg, "from_you")
        if from_you is None:
            from_you = bool(my_name) and sender.lower() == my_name.lower()
        label = "You" if from_you else sender
        when = relative_time(_get(msg, "created_at"))
        lines.append("")
        lines.append(f"{label} ({when})" if when else label)
        lines.append(f"  {_get(msg, 'message', '')}")
        if _get(msg, "needs_human_input"):
            lines.append("  [needs human input]")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

def format_challenge(challenge, action: str) -> str:
    code = _get(challenge, "code", "")
    lines = ["", "Verification Required"]
    if not code and not _get(challenge, "challenge"):
        lines.append("Verification is required, but challenge details are missing from the response.")
        return "\n".join(lines)
    if _get(challenge, "instructions"):
        lines.append(_get(challenge, "instructions"))
    if _get(challenge, "challenge"):
        lines.append(f"Challenge: {_get(challenge, 'challenge')}")
    lines.append("")
    lines.append(f"To complete your {action}, run:")
    lines.append(f'  moltbook verify --code "{code}" --solution "<YOUR_ANSWER>"')
    return "\n".join(lines)
