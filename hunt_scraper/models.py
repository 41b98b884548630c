"""
File: hunt_scraper/models.py
Internal data structures produced by the crawl and consumed by enrichment,
correlation and storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar


JsonDict = Dict[str, Any]
T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One fetched page: its items plus the cursor state needed for the next request."""

    items: List[T] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False


@dataclass
class Reviewer:
    name: str = ""
    username: str = ""


@dataclass
class Review:
    """A product review.

    ``used_to_build`` and ``sentiment`` are filled by the enrichment stage;
    ``sentiment`` is only ever set when ``rating`` is None.
    """

    id: str
    reviewer: Reviewer
    text: str
    rating: Optional[int] = None
    sentiment: Optional[str] = None
    used_to_build: str = ""
    date: str = ""
    helpful_votes: int = 0
    url: str = ""
    is_verified: bool = False
    comments_count: int = 0
    has_voted: bool = False


@dataclass
class BylineProduct:
    id: str = ""
    name: str = ""
    slug: str = ""


@dataclass
class Author:
    id: str = ""
    name: str = ""
    username: str = ""
    avatar_url: str = ""
    url: str = ""
    product: Optional[BylineProduct] = None


@dataclass
class SubjectRef:
    """The thread or launch a comment was posted on."""

    id: str = ""
    slug: str = ""
    title: str = ""


@dataclass
class Comment:
    """A comment or reply on a forum thread or a launch.

    Top-level comments carry ``replies`` plus the pagination state
    (``has_more_replies``, ``replies_end_cursor``) used by the reply expander.
    Replies keep any nested replies found in the same response in
    ``nested_replies``; those are never expanded further.
    """

    id: str
    author: Optional[Author] = None
    body: str = ""
    body_html: str = ""
    date: str = ""
    created_at: str = ""
    votes_count: int = 0
    is_pinned: bool = False
    is_sticky: bool = False
    parent_id: Optional[str] = None
    url: str = ""
    path: str = ""
    badges: List[Any] = field(default_factory=list)
    subject: SubjectRef = field(default_factory=SubjectRef)

    replies: List["Comment"] = field(default_factory=list)
    replies_count: int = 0
    has_more_replies: bool = False
    replies_end_cursor: Optional[str] = None

    nested_replies: List["Comment"] = field(default_factory=list)
    nested_replies_count: int = 0


@dataclass
class Thread:
    """A forum discussion thread. ``comments_count`` may exceed ``len(comments)``."""

    id: str
    title: str = ""
    author: Author = field(default_factory=Author)
    date: str = ""
    is_featured: bool = False
    is_pinned: bool = False
    upvotes_count: int = 0
    comments_count: int = 0
    slug: str = ""
    path: str = ""
    url: str = ""
    description: str = ""
    comments: List[Comment] = field(default_factory=list)


@dataclass
class LaunchBadge:
    position: Optional[int] = None
    period: Optional[str] = None
    date: Optional[str] = None


@dataclass
class Launch:
    id: str
    name: str = ""
    slug: str = ""
    tagline: str = ""
    date: str = ""
    created_at: str = ""
    featured_at: Optional[str] = None
    updated_at: Optional[str] = None
    daily_rank: Optional[int] = None
    weekly_rank: Optional[int] = None
    monthly_rank: Optional[int] = None
    votes_count: int = 0
    comments_count: int = 0
    latest_score: Optional[float] = None
    launch_day_score: Optional[float] = None
    shortened_url: str = ""
    thumbnail_url: Optional[str] = None
    badges: List[LaunchBadge] = field(default_factory=list)
    product_id: Optional[str] = None
    comments: List[Comment] = field(default_factory=list)


@dataclass
class MadePost:
    id: str = ""
    slug: str = ""
    name: str = ""
    thumbnail_url: Optional[str] = None


@dataclass
class LaunchCommentActivity:
    launch_id: str
    launch_name: str
    launch_slug: str
    comment_id: str
    body: str
    date: str
    votes_count: int
    is_reply: bool = False
    parent_id: Optional[str] = None


@dataclass
class ForumCommentActivity:
    thread_id: str
    thread_title: str
    comment_id: str
    body: str
    date: str
    votes_count: int
    is_reply: bool = False
    parent_id: Optional[str] = None


@dataclass
class ThreadActivity:
    thread_id: str
    title: str
    date: str
    url: str
    comments_count: int
    upvotes_count: int


@dataclass
class Maker:
    """A product maker.

    The three activity lists are owned by the correlator; the fetcher leaves
    them empty.
    """

    id: str
    name: str = ""
    username: str = ""
    headline: Optional[str] = None
    avatar_url: str = ""
    followers_count: int = 0
    made_posts: List[MadePost] = field(default_factory=list)
    made_posts_count: int = 0

    launch_comments: List[LaunchCommentActivity] = field(default_factory=list)
    forum_comments: List[ForumCommentActivity] = field(default_factory=list)
    forum_threads_authored: List[ThreadActivity] = field(default_factory=list)


@dataclass
class Category:
    id: str = ""
    title: str = ""
    slug: str = ""


@dataclass
class Media:
    id: str = ""
    type: str = ""
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    platform: Optional[str] = None


@dataclass
class PostSummary:
    id: str = ""
    slug: str = ""
    name: str = ""
    tagline: str = ""
    votes_count: int = 0
    comments_count: int = 0
    created_at: str = ""
    thumbnail_url: Optional[str] = None


@dataclass
class ProductDetails:
    id: str
    slug: str = ""
    name: str = ""
    description: str = ""
    reviews_count: int = 0
    reviews_rating: Optional[float] = None
    posts_count: int = 0
    stacks_count: int = 0
    alternatives_count: int = 0
    shoutouts_count: int = 0
    categories: List[Category] = field(default_factory=list)
    media: List[Media] = field(default_factory=list)
    posts: List[PostSummary] = field(default_factory=list)
    discussion_forum_path: Optional[str] = None


@dataclass
class ProductCrawl:
    """Everything gathered for one product in a single crawl."""

    slug: str
    reviews: List[Review] = field(default_factory=list)
    threads: List[Thread] = field(default_factory=list)
    launches: List[Launch] = field(default_factory=list)
    details: Optional[ProductDetails] = None
    makers: List[Maker] = field(default_factory=list)


__all__ = [
    "JsonDict",
    "Page",
    "Reviewer",
    "Review",
    "BylineProduct",
    "Author",
    "SubjectRef",
    "Comment",
    "Thread",
    "LaunchBadge",
    "Launch",
    "MadePost",
    "LaunchCommentActivity",
    "ForumCommentActivity",
    "ThreadActivity",
    "Maker",
    "Category",
    "Media",
    "PostSummary",
    "ProductDetails",
    "ProductCrawl",
]
