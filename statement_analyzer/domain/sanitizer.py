"""Cleanup of free-form model output before JSON decoding"""

import re

# Opening fences may carry a language tag (```json, ```JSON, ```javascript)
CODE_FENCE_PATTERN = re.compile(r"```[A-Za-z]*")


def sanitize(raw_text: str) -> str:
    """
    Reduce a model answer to the substring most likely to be a JSON object.

    Steps:
    - Drop code fence markers, tagged or bare
    - Trim surrounding whitespace
    - Keep the span from the first "{" to the last "}" inclusive, discarding
      any commentary around it

    Text without a usable brace pair is returned trimmed; decoding it is left
    to the caller, which reports the failure.
    """
    text = CODE_FENCE_PATTERN.sub("", raw_text).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and start < end:
        return text[start:end + 1]

    return text
