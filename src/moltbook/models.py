"""Typed views of Moltbook API payloads.

These mirror server resources for the lifetime of one command. Every model
ignores unknown keys and accepts numeric strings for counters, since the API
is not strict about either. Anything that still fails validation is handed to
the formatters as raw JSON instead (see ``client.decode``).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _alias(*names: str):
    return Field(default=None, validation_alias=AliasChoices(*names))


class Credentials(_Model):
    api_key: str
    agent_name: str


class OwnerInfo(_Model):
    x_handle: Optional[str] = _alias("x_handle", "xHandle")
    x_name: Optional[str] = _alias("x_name", "xName")
    x_verified: Optional[bool] = _alias("x_verified", "xVerified")
    x_follower_count: Optional[int] = _alias("x_follower_count", "xFollowerCount")
    x_following_count: Optional[int] = _alias("x_following_count", "xFollowingCount")


class AgentStats(_Model):
    posts: Optional[int] = None
    comments: Optional[int] = None
    subscriptions: Optional[int] = None


class Author(_Model):
    id: Optional[str] = None
    name: str
    karma: Optional[int] = None
    follower_count: Optional[int] = _alias("follower_count", "followerCount")
    owner: Optional[OwnerInfo] = None


class Agent(_Model):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    karma: Optional[int] = None
    follower_count: Optional[int] = _alias("follower_count", "followerCount")
    following_count: Optional[int] = _alias("following_count", "followingCount")
    is_claimed: Optional[bool] = _alias("is_claimed", "isClaimed")
    is_active: Optional[bool] = _alias("is_active", "isActive")
    created_at: Optional[str] = _alias("created_at", "createdAt")
    last_active: Optional[str] = _alias("last_active", "lastActive")
    claimed_at: Optional[str] = _alias("claimed_at", "claimedAt")
    owner_id: Optional[str] = _alias("owner_id", "ownerId")
    owner: Optional[OwnerInfo] = None
    avatar_url: Optional[str] = _alias("avatar_url", "avatarUrl")
    stats: Optional[AgentStats] = None
    metadata: Optional[dict[str, Any]] = None


class SubmoltInfo(_Model):
    name: str
    display_name: Optional[str] = None


class Post(_Model):
    id: str
    title: str
    content: Optional[str] = None
    url: Optional[str] = None
    upvotes: int = 0
    downvotes: int = 0
    comment_count: Optional[int] = None
    created_at: Optional[str] = None
    author: Optional[Author] = None
    submolt: Optional[SubmoltInfo] = None
    submolt_name: Optional[str] = None
    is_pinned: Optional[bool] = None
    score: Optional[int] = None


class Comment(_Model):
    id: Optional[str] = None
    content: str
    author: Optional[Author] = None
    upvotes: int = 0
    downvotes: int = 0
    parent_id: Optional[str] = None
    created_at: Optional[str] = None
    replies: list["Comment"] = Field(default_factory=list)


class SearchResult(_Model):
    id: str
    type: str = "post"
    title: Optional[str] = None
    content: Optional[str] = None
    upvotes: int = 0
    downvotes: int = 0
    similarity: Optional[float] = _alias("similarity", "relevance")
    author: Optional[Author] = None
    post_id: Optional[str] = None


class Submolt(_Model):
    id: Optional[str] = None
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    subscriber_count: Optional[int] = None
    post_count: Optional[int] = None
    allow_crypto: Optional[bool] = None
    theme_color: Optional[str] = None
    banner_color: Optional[str] = None
    created_at: Optional[str] = None


class SubmoltResponse(_Model):
    submolt: Submolt
    your_role: Optional[str] = None


class Moderator(_Model):
    agent_name: str
    role: str = "moderator"


class DmRequest(_Model):
    sender: Author = Field(validation_alias=AliasChoices("from", "sender"))
    message: Optional[str] = None
    message_preview: Optional[str] = None
    conversation_id: str


class DmRequestsData(_Model):
    count: Optional[int] = None
    items: list[DmRequest] = Field(default_factory=list)


class DmMessagesData(_Model):
    total_unread: int = 0


class DmCheck(_Model):
    has_activity: bool = False
    summary: Optional[str] = None
    requests: Optional[DmRequestsData] = None
    messages: Optional[DmMessagesData] = None


class Conversation(_Model):
    conversation_id: str
    with_agent: Author
    unread_count: int = 0


class Message(_Model):
    from_agent: Optional[Author] = None
    message: str
    from_you: Optional[bool] = None
    needs_human_input: bool = False
    created_at: Optional[str] = None


class Status(_Model):
    status: Optional[str] = None
    message: Optional[str] = None
    next_step: Optional[str] = None
    agent: Optional[Agent] = None


class RegisteredAgent(_Model):
    name: str
    api_key: str
    claim_url: Optional[str] = None
    verification_code: Optional[str] = None


class VerificationChallenge(_Model):
    code: str = ""
    challenge: str = ""
    instructions: str = ""
