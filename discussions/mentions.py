"""
Find @username mentions in threads and comments.

Mentions are searched in the rendered markdown rather than in the raw text,
with the content of <code> elements removed: an "@name" in a code span is
almost always literal syntax, not a mention.
"""

import re
from typing import Any, Callable, Iterable, NamedTuple, Optional

import markdown
from bs4 import BeautifulSoup

# "@" at the start of the text or after whitespace, and not glued to a
# following word character, so "@bob's" mentions bob and "foo@bar" is ignored.
AT_NOTIFICATION_REGEX = re.compile(r"(?<!\S)@([A-Za-z0-9_]+)(?!\w)", re.ASCII)

CODE_PLACEHOLDER = "`"

MentionRecord = dict[str, Any]
UserLookup = Callable[[str], Optional[Any]]


class MentionScan(NamedTuple):
    """
    Result of scanning a piece of content for mentions.

    at_position_list replaces the stored list of the content;
    new_user_ids are the users mentioned now but not in the stored list.
    """

    at_position_list: list[MentionRecord]
    new_user_ids: set[str]


def render_mention_text(text: str) -> str:
    """
    Render markdown text and return its plain text, without the contents of code elements.

    Each code element is replaced by a backtick so that an "@" glued to it
    stays glued to a non-space character.
    """
    soup = BeautifulSoup(markdown.markdown(text), features="html.parser")
    for code in soup.find_all("code"):
        code.replace_with(CODE_PLACEHOLDER)
    return soup.get_text()


def find_mention_tokens(text: str) -> list[tuple[int, str]]:
    """
    Return (position, username) for every mention token, in order of appearance.

    The position is the ordinal of the match in the text, starting at 0.
    """
    return [
        (position, match.group(1))
        for position, match in enumerate(AT_NOTIFICATION_REGEX.finditer(text))
    ]


def get_valid_at_position_list(text: str, find_user: UserLookup) -> list[MentionRecord]:
    """
    Return the mention records of the users mentioned in a markdown text.

    Usernames that find_user cannot resolve are dropped; they still use up
    their position.
    """
    at_position_list = []
    for position, username in find_mention_tokens(render_mention_text(text)):
        user = find_user(username)
        if user is None:
            continue
        at_position_list.append(
            {"position": position, "username": username, "user_id": str(user.pk)}
        )
    return at_position_list


def mentioned_user_ids(at_position_list: Iterable[MentionRecord]) -> set[str]:
    return {str(record["user_id"]) for record in at_position_list}


def get_new_mention_user_ids(
    previous: Iterable[MentionRecord], current: Iterable[MentionRecord]
) -> set[str]:
    """
    Return the ids of users mentioned in current but not in previous.
    """
    return mentioned_user_ids(current) - mentioned_user_ids(previous)


def resolve_mentions(
    text: str,
    previous_at_position_list: Optional[Iterable[MentionRecord]],
    find_user: UserLookup,
) -> MentionScan:
    """
    Scan text for mentions and diff them against the previously stored mentions.
    """
    at_position_list = get_valid_at_position_list(text, find_user)
    return MentionScan(
        at_position_list=at_position_list,
        new_user_ids=get_new_mention_user_ids(
            previous_at_position_list or [], at_position_list
        ),
    )
