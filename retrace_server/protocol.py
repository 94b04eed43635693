"""Line-oriented request/response wire format.

Request:   VERSION CLASSNAME [METHODNAME [LINENUMBER]]
Response:  OK: <class> <method>[,<method>...]   or   ERROR: <message>
"""

from __future__ import annotations

import re

from retrace_server.config import NO_LINE, Failure, Request, Resolution
from retrace_server.errors import RequestMalformed

LINE_NUMBER_RE = re.compile(r"[+-]?[0-9]+")


def parse_request(line: str) -> Request:
    """Parse one request line. Tokens past the fourth are ignored."""
    args = line.split()
    if len(args) < 2:
        raise RequestMalformed("couldn't parse the request")

    line_number = NO_LINE
    if len(args) >= 4:
        if not LINE_NUMBER_RE.fullmatch(args[3]):
            raise RequestMalformed(f"invalid line number: {args[3]!r}")
        line_number = int(args[3])

    return Request(
        version=args[0],
        class_name=args[1],
        method_name=args[2] if len(args) >= 3 else None,
        line_number=line_number,
    )


def format_response(outcome: Resolution | Failure) -> str:
    """Render a response line, without the trailing newline."""
    if isinstance(outcome, Failure):
        return f"ERROR: {outcome.message}"
    # The separator is sent even when there are no method names.
    return f"OK: {outcome.class_name} {','.join(outcome.method_names)}"
