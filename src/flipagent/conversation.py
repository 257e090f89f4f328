"""Conversation structure repair for the Messages API.

The API rejects conversations that do not strictly alternate user/assistant
turns, start on a user turn and end on a user turn.  History coming from
sessions (summaries, failed turns, tool loops) does not always satisfy that,
so every request goes through ``ensure_alternating_roles`` first.
"""

CONVERSATION_START = "(conversation start)"


def _as_blocks(content) -> list:
    if isinstance(content, str):
        return [{"type": "text", "text": content}]
    return list(content)


def _merge_content(first, second):
    if isinstance(first, str) and isinstance(second, str):
        return f"{first}\n{second}"
    return _as_blocks(first) + _as_blocks(second)


def ensure_alternating_roles(turns: list[dict]) -> list[dict]:
    """Return a copy of ``turns`` that alternates roles and starts/ends on ``user``.

    Consecutive same-role turns are merged: two text turns are joined with a
    newline, anything else is concatenated as content block lists.  The input
    list and its dicts are left untouched.
    """
    if not turns:
        return []

    result: list[dict] = []
    for turn in turns:
        if result and result[-1]["role"] == turn["role"]:
            result[-1] = {
                **result[-1],
                "content": _merge_content(result[-1]["content"], turn["content"]),
            }
        else:
            result.append(dict(turn))

    if result[0]["role"] != "user":
        result.insert(0, {"role": "user", "content": CONVERSATION_START})
    if result[-1]["role"] != "user":
        result.append({"role": "user", "content": ""})

    return result
