# hunt_scraper/schemas.py
"""
Response schemas for the upstream GraphQL operations.

Each operation has one top-level model. The path down to the collection that
matters is required, so a response missing any part of it fails validation and
``decode`` returns None; leaf fields are optional and defaulted later by the
normalizers.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

NodeT = TypeVar("NodeT")
ModelT = TypeVar("ModelT", bound=BaseModel)


class GraphModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class PageInfo(GraphModel):
    has_next_page: Optional[bool] = None
    end_cursor: Optional[str] = None


class Edge(GraphModel, Generic[NodeT]):
    node: Optional[NodeT] = None


class Connection(GraphModel, Generic[NodeT]):
    edges: List[Edge[NodeT]] = []
    page_info: PageInfo = PageInfo()
    total_count: Optional[int] = None

    @field_validator("edges", mode="before")
    @classmethod
    def _null_edges(cls, value: Any) -> Any:
        return value or []

    @field_validator("page_info", mode="before")
    @classmethod
    def _null_page_info(cls, value: Any) -> Any:
        return value or {}

    def nodes(self) -> List[NodeT]:
        return [edge.node for edge in self.edges if edge.node is not None]


# --- Shared nodes -----------------------------------------------------------

class BylineProductNode(GraphModel):
    id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None


class MadePostNode(GraphModel):
    id: Optional[str] = None
    slug: Optional[str] = None
    name: Optional[str] = None
    thumbnail_image_uuid: Optional[str] = None


class UserNode(GraphModel):
    id: Optional[str] = None
    name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    headline: Optional[str] = None
    followers_count: Optional[int] = None
    selected_byline_product: Optional[BylineProductNode] = None
    made_posts: Optional[Connection[MadePostNode]] = None


class ParentRef(GraphModel):
    id: Optional[str] = None


class CommentNode(GraphModel):
    id: Optional[str] = None
    body: Optional[str] = None
    body_html: Optional[str] = None
    created_at: Optional[str] = None
    votes_count: Optional[int] = None
    is_pinned: Optional[bool] = None
    is_sticky: Optional[bool] = None
    url: Optional[str] = None
    path: Optional[str] = None
    badges: Optional[List[Any]] = None
    user: Optional[UserNode] = None
    parent: Optional[ParentRef] = None
    replies_count: Optional[int] = None
    replies: Optional[Connection[CommentNode]] = None


CommentNode.model_rebuild()


# --- ProductReviewsPage -----------------------------------------------------

class ReviewNode(GraphModel):
    id: Optional[str] = None
    text: Optional[str] = None
    body: Optional[str] = None
    rating: Optional[int] = None
    created_at: Optional[str] = None
    votes_count: Optional[int] = None
    url: Optional[str] = None
    is_verified: Optional[bool] = None
    comments_count: Optional[int] = None
    has_voted: Optional[bool] = None
    user: Optional[UserNode] = None


class ReviewsProduct(GraphModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    reviews_count: Optional[int] = None
    reviews_rating: Optional[float] = None
    reviews: Connection[ReviewNode]


class ReviewsData(GraphModel):
    product: ReviewsProduct


class ReviewsResponse(GraphModel):
    data: ReviewsData


# --- DiscussionsForumsQuery -------------------------------------------------

class CommentableCounts(GraphModel):
    votes_count: Optional[int] = None
    comments_count: Optional[int] = None


class ThreadNode(GraphModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    slug: Optional[str] = None
    path: Optional[str] = None
    comments_count: Optional[int] = None
    is_featured: Optional[bool] = None
    is_pinned: Optional[bool] = None
    user: Optional[UserNode] = None
    commentable: Optional[CommentableCounts] = None


class ThreadsForum(GraphModel):
    threads: Connection[ThreadNode]


class ThreadsData(GraphModel):
    discussion_forum: ThreadsForum


class ThreadsResponse(GraphModel):
    data: ThreadsData


# --- PDiscussionRedesignQuery (thread comments) -----------------------------

class ThreadCommentable(GraphModel):
    comments_count: Optional[int] = None
    threads: Connection[CommentNode]


class ForumThread(GraphModel):
    id: Optional[str] = None
    title: Optional[str] = None
    slug: Optional[str] = None
    commentable: ThreadCommentable


class ThreadCommentsForum(GraphModel):
    thread: ForumThread


class ThreadCommentsData(GraphModel):
    discussion_forum: ThreadCommentsForum


class ThreadCommentsResponse(GraphModel):
    data: ThreadCommentsData


# --- CommentsThread (reply pages) -------------------------------------------

class ReplyParent(GraphModel):
    id: Optional[str] = None
    replies_count: Optional[int] = None
    replies: Connection[CommentNode]


class RepliesData(GraphModel):
    comment: ReplyParent


class RepliesResponse(GraphModel):
    data: RepliesData


# --- ProductPageLaunches ----------------------------------------------------

class BadgeNode(GraphModel):
    position: Optional[int] = None
    period: Optional[str] = None
    date: Optional[str] = None


class ProductRef(GraphModel):
    id: Optional[str] = None
    is_subscribed: Optional[bool] = None


class PostNode(GraphModel):
    id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    tagline: Optional[str] = None
    created_at: Optional[str] = None
    featured_at: Optional[str] = None
    updated_at: Optional[str] = None
    thumbnail_image_uuid: Optional[str] = None
    daily_rank: Optional[int] = None
    weekly_rank: Optional[int] = None
    monthly_rank: Optional[int] = None
    votes_count: Optional[int] = None
    comments_count: Optional[int] = None
    latest_score: Optional[float] = None
    launch_day_score: Optional[float] = None
    shortened_url: Optional[str] = None
    badges: Optional[Connection[BadgeNode]] = None
    product: Optional[ProductRef] = None


class LaunchesProduct(GraphModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    posts: Connection[PostNode]


class LaunchesData(GraphModel):
    product: LaunchesProduct


class LaunchesResponse(GraphModel):
    data: LaunchesData


# --- PostPageComments / Comments (launch comments) --------------------------

class CommentSubject(GraphModel):
    id: Optional[str] = None
    slug: Optional[str] = None
    name: Optional[str] = None
    comments_count: Optional[int] = None
    threads: Optional[Connection[CommentNode]] = None


class FirstLaunchCommentsPost(CommentSubject):
    id: str


class FirstLaunchCommentsData(GraphModel):
    post: FirstLaunchCommentsPost


class FirstLaunchCommentsResponse(GraphModel):
    data: FirstLaunchCommentsData


class LaunchCommentsData(GraphModel):
    subject: Optional[CommentSubject] = None
    commentable: Optional[CommentSubject] = None

    def source(self) -> Optional[CommentSubject]:
        """The comment container; upstream has used both field names."""
        for candidate in (self.subject, self.commentable):
            if candidate is not None and candidate.threads is not None:
                return candidate
        return None


class LaunchCommentsResponse(GraphModel):
    data: LaunchCommentsData


# --- ProductAboutPage -------------------------------------------------------

class CategoryNode(GraphModel):
    id: Optional[str] = None
    title: Optional[str] = None
    to: Optional[str] = None


class MediaNode(GraphModel):
    id: Optional[str] = None
    media_type: Optional[str] = None
    image_uuid: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ForumRef(GraphModel):
    path: Optional[str] = None


class DetailsProduct(GraphModel):
    id: str
    slug: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    reviews_count: Optional[int] = None
    reviews_rating: Optional[float] = None
    posts_count: Optional[int] = None
    stacks_count: Optional[int] = None
    alternatives_count: Optional[int] = None
    shoutouts_to_count: Optional[int] = None
    categories: Optional[List[CategoryNode]] = None
    media: Optional[List[MediaNode]] = None
    posts: Optional[Connection[PostNode]] = None
    discussion_forum: Optional[ForumRef] = None


class DetailsData(GraphModel):
    product: DetailsProduct


class DetailsResponse(GraphModel):
    data: DetailsData


# --- ProductPageMakers ------------------------------------------------------

class MakersProduct(GraphModel):
    makers: Connection[UserNode]


class MakersData(GraphModel):
    product: MakersProduct


class MakersResponse(GraphModel):
    data: MakersData


def decode(model: Type[ModelT], payload: Any) -> Optional[ModelT]:
    """
    Validate a raw response against an operation schema.

    Args:
        model: Top-level response model for the operation
        payload: Parsed JSON body

    Returns:
        The validated model, or None when the payload does not have the
        expected shape
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.debug("Response did not match %s: %s", model.__name__, e)
        return None
