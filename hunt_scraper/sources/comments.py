"""
Normalization of comment nodes shared by thread and launch comments.
"""
from __future__ import annotations

from typing import List, Optional

from hunt_scraper.models import Author, BylineProduct, Comment, SubjectRef
from hunt_scraper.schemas import CommentNode, UserNode
from hunt_scraper.utils import format_date, profile_url


def parse_author(user: Optional[UserNode]) -> Optional[Author]:
    if user is None:
        return None
    byline = user.selected_byline_product
    return Author(
        id=user.id or "",
        name=user.name or "",
        username=user.username or "",
        avatar_url=user.avatar_url or "",
        url=profile_url(user.username),
        product=BylineProduct(
            id=byline.id or "",
            name=byline.name or "",
            slug=byline.slug or "",
        ) if byline else None,
    )


def _base_comment(node: CommentNode, subject: SubjectRef, parent_id: Optional[str]) -> Comment:
    if node.parent is not None and node.parent.id:
        parent_id = node.parent.id
    return Comment(
        id=node.id or "",
        author=parse_author(node.user),
        body=node.body or "",
        body_html=node.body_html or "",
        date=format_date(node.created_at),
        created_at=node.created_at or "",
        votes_count=node.votes_count or 0,
        is_pinned=bool(node.is_pinned),
        is_sticky=bool(node.is_sticky),
        parent_id=parent_id,
        url=node.url or "",
        path=node.path or "",
        badges=list(node.badges or []),
        subject=subject,
        replies_count=node.replies_count or 0,
    )


def parse_reply(node: CommentNode, parent_id: str, subject: SubjectRef) -> Comment:
    """
    Normalize a reply node.

    Replies that carry their own replies in the same response keep them in
    ``nested_replies``. Those are recorded as-is and never paginated.
    """
    reply = _base_comment(node, subject, parent_id)
    if node.replies_count:
        reply.nested_replies_count = node.replies_count
        if node.replies is not None:
            reply.nested_replies = [
                _base_comment(nested, subject, reply.id) for nested in node.replies.nodes()
            ]
    return reply


def parse_replies(nodes: List[CommentNode], parent_id: str, subject: SubjectRef) -> List[Comment]:
    return [parse_reply(node, parent_id, subject) for node in nodes]


def parse_comment(node: CommentNode, subject: SubjectRef) -> Comment:
    """
    Normalize a top-level comment node, including its first page of replies.

    Args:
        node: Decoded comment node
        subject: The thread or launch the comment belongs to

    Returns:
        Comment whose ``has_more_replies`` / ``replies_end_cursor`` mirror the
        replies page info in the response
    """
    comment = _base_comment(node, subject, None)
    if node.replies is not None:
        comment.replies = parse_replies(node.replies.nodes(), comment.id, subject)
        comment.has_more_replies = bool(node.replies.page_info.has_next_page)
        comment.replies_end_cursor = node.replies.page_info.end_cursor
    return comment
