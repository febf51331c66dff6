"""
Reply parser for the FTP control connection
Assembles reply lines and decodes the PASV payload
"""

import re

from .errors import ProtocolError

CODE_PATTERN = re.compile(r'^(\d{3})([ -]|$)')
PASV_PATTERN = re.compile(r'\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)')


class Reply:
    """Represents one logical FTP server reply"""

    def __init__(self, code, message, lines=None):
        """
        Initialize reply

        Args:
            code: Reply code of the closing line (e.g., 220, 230)
            message: Reply text with code prefixes removed
            lines: Raw reply lines from server
        """
        self.code = code
        self.message = message
        self.lines = lines or []

    @property
    def is_final(self):
        """Check if reply ends the exchange (anything but 1xx)"""
        return self.code >= 200

    @property
    def is_preliminary(self):
        """Check if reply is preliminary (1xx)"""
        return 100 <= self.code < 200

    @property
    def is_success(self):
        """Check if reply indicates success (2xx)"""
        return 200 <= self.code < 300

    @property
    def is_intermediate(self):
        """Check if reply is intermediate (3xx)"""
        return 300 <= self.code < 400

    @property
    def is_error(self):
        """Check if reply is error (4xx or 5xx)"""
        return self.code >= 400

    @property
    def is_transient_error(self):
        return 400 <= self.code < 500

    @property
    def is_permanent_error(self):
        return 500 <= self.code < 600

    def __eq__(self, other):
        if not isinstance(other, Reply):
            return NotImplemented
        return self.code == other.code and self.message == other.message

    def __str__(self):
        return f"{self.code} {self.message}"

    def __repr__(self):
        return f"Reply(code={self.code}, message={self.message!r})"


class ResponseParser:
    """Parser for FTP server replies"""

    @staticmethod
    def line_code(line):
        """
        Split the code and separator off a reply line

        Args:
            line: One reply line without CRLF

        Returns:
            tuple: (code as str, True if continuation) or (None, False)
        """
        match = CODE_PATTERN.match(line)
        if not match:
            return None, False
        return match.group(1), match.group(2) == '-'

    @staticmethod
    def is_closing_line(line, code):
        """
        Check whether a line closes a multi-line reply opened with code

        Args:
            line: Candidate line
            code: Three-digit code string of the opening line

        Returns:
            bool: True if the line is "<code> text" or exactly "<code>"
        """
        line_code, continuation = ResponseParser.line_code(line)
        return line_code == code and not continuation

    @staticmethod
    def parse(lines):
        """
        Parse the lines of one reply

        Args:
            lines: List of reply lines or single line string

        Returns:
            Reply: Parsed reply, coded by its closing line
        """
        if isinstance(lines, str):
            lines = [lines]

        if not lines:
            raise ProtocolError("Empty reply")

        first_code, _ = ResponseParser.line_code(lines[0])
        last_code, continuation = ResponseParser.line_code(lines[-1])
        if first_code is None:
            raise ProtocolError(f"Reply line has no code: {lines[0]!r}")
        if last_code is None or continuation:
            raise ProtocolError(f"Reply is not closed: {lines[-1]!r}")

        code = int(last_code)

        if len(lines) == 1:
            message = lines[0][4:]
        else:
            # Multiline reply - combine all lines
            message_parts = []
            for line in lines:
                line_code, _ = ResponseParser.line_code(line)
                if line_code is not None:
                    message_parts.append(line[4:])
                else:
                    message_parts.append(line)
            message = '\n'.join(message_parts)

        return Reply(code, message.strip(), list(lines))

    @staticmethod
    def parse_pasv_response(reply):
        """
        Parse PASV reply to extract host and port

        Args:
            reply: Reply object from PASV command

        Returns:
            tuple: (host, port)

        Example:
            "227 Entering Passive Mode (192,168,1,1,234,56)"
            Returns: ("192.168.1.1", 60024)  # 234*256 + 56
        """
        if reply.code != 227:
            raise ProtocolError(f"PASV refused: {reply}", code=reply.code, phase='pasv')

        matches = PASV_PATTERN.findall(reply.message)
        if len(matches) != 1:
            raise ProtocolError(f"Invalid PASV reply: {reply.message!r}", code=reply.code, phase='pasv')

        numbers = [int(n) for n in matches[0]]
        if any(n > 255 for n in numbers):
            raise ProtocolError(f"PASV value out of range: {reply.message!r}", code=reply.code, phase='pasv')

        h1, h2, h3, h4, p1, p2 = numbers
        host = f"{h1}.{h2}.{h3}.{h4}"
        port = p1 * 256 + p2

        return host, port
