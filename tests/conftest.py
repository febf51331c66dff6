"""
Scripted in-process FTP server used by the test suite

The server keeps an in-memory file tree, answers one control connection at a
time and records every command it receives. Tests steer failures through
``replies`` (answer a verb with fixed lines instead of handling it) and
``final_replies`` (replace the 226 that ends a data transfer). ``preliminary``
is the 1xx line sent once the data connection is accepted, and
``stall_data`` holds LIST and RETR data back until the server stops.
"""

import posixpath
import select
import socket
import threading

import pytest

from ftpclient.core.config import ClientConfig

DATA_VERBS = ('LIST', 'RETR', 'STOR')


class FakeFTPServer:
    """Minimal passive-mode FTP server"""

    def __init__(self):
        self.files = {}
        self.dirs = {'/'}
        self.users = {'anonymous': ''}
        self.greeting = ['220 Fake FTP server ready']
        self.replies = {}
        self.final_replies = {}
        self.preliminary = '150 Opening BINARY mode data connection.'
        self.stall_data = False

        self.commands = []
        self.connections = 0
        self.data_connections = 0
        self.ordering_violations = []

        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(('127.0.0.1', 0))
        self._sock.listen(5)
        self._sock.settimeout(0.2)
        self.host, self.port = self._sock.getsockname()

        self._stop = threading.Event()
        self._release = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self._stop.set()
        self._release.set()
        self._thread.join(timeout=5)
        self._sock.close()

    def url(self, path='/', user=None, password=None):
        auth = ''
        if user is not None:
            auth = user if password is None else f"{user}:{password}"
            auth += '@'
        return f"ftp://{auth}{self.host}:{self.port}{path}"

    def verbs(self):
        return [c.split(' ', 1)[0].upper() for c in self.commands]

    # ===== Server loop =====

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            self.connections += 1
            with conn:
                conn.settimeout(5)
                try:
                    self._handle(conn)
                except OSError:
                    pass

    def _send(self, conn, *lines):
        conn.sendall(''.join(line + '\r\n' for line in lines).encode('utf-8'))

    def _handle(self, conn):
        reader = conn.makefile('rb')
        self._send(conn, *self.greeting)
        user = None
        listener = None

        for raw in reader:
            line = raw.decode('utf-8').rstrip('\r\n')
            self.commands.append(line)
            verb, _, arg = line.partition(' ')
            verb = verb.upper()

            if verb in self.replies:
                reply = self.replies[verb]
                self._send(conn, *([reply] if isinstance(reply, str) else reply))
                if verb in DATA_VERBS and listener is not None:
                    listener.close()
                    listener = None
                continue

            if verb == 'USER':
                user = arg
                self._send(conn, '331 Please specify the password.')
            elif verb == 'PASS':
                if user in self.users and self.users[user] == arg:
                    self._send(conn, '230 Login successful.')
                else:
                    self._send(conn, '530 Login incorrect.')
            elif verb == 'TYPE':
                self._send(conn, '200 Switching to Binary mode.')
            elif verb == 'PASV':
                if listener is not None:
                    listener.close()
                listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                listener.bind(('127.0.0.1', 0))
                listener.listen(1)
                listener.settimeout(5)
                port = listener.getsockname()[1]
                self._send(conn, f"227 Entering Passive Mode (127,0,0,1,{port >> 8},{port & 0xFF}).")
            elif verb in DATA_VERBS:
                self._transfer(conn, verb, arg, listener)
                listener = None
            elif verb == 'MKD':
                if arg in self.dirs or arg in self.files:
                    self._send(conn, '550 Create directory operation failed.')
                else:
                    self.dirs.add(arg)
                    self._send(conn, f'257 "{arg}" created')
            elif verb == 'RMD':
                if arg in self.dirs and arg != '/':
                    self.dirs.discard(arg)
                    self._send(conn, '250 Remove directory operation successful.')
                else:
                    self._send(conn, '550 Remove directory operation failed.')
            elif verb == 'DELE':
                if arg in self.files:
                    del self.files[arg]
                    self._send(conn, '250 Delete operation successful.')
                else:
                    self._send(conn, '550 Delete operation failed.')
            elif verb == 'QUIT':
                self._send(conn, '221 Goodbye.')
                return
            else:
                self._send(conn, '502 Command not implemented.')

    def _transfer(self, conn, verb, arg, listener):
        if listener is None:
            self._send(conn, '425 Use PASV first.')
            return

        with listener:
            ready, _, _ = select.select([listener], [], [], 0)
            if not ready:
                self.ordering_violations.append(f"{verb} {arg}")
            if verb == 'RETR' and arg not in self.files:
                self._send(conn, '550 Failed to open file.')
                return
            data, _ = listener.accept()

        self.data_connections += 1
        with data:
            data.settimeout(5)
            self._send(conn, self.preliminary)
            if self.stall_data and verb != 'STOR':
                self._release.wait(5)
            if verb == 'LIST':
                data.sendall(self._listing(arg))
            elif verb == 'RETR':
                data.sendall(self.files[arg])
            else:
                chunks = []
                while True:
                    chunk = data.recv(65536)
                    if not chunk:
                        break
                    chunks.append(chunk)
                self.files[arg] = b''.join(chunks)

        self._send(conn, self.final_replies.get(verb, '226 Transfer complete.'))

    def _listing(self, path):
        path = path or '/'
        entries = []
        for name in sorted(self.dirs):
            if name != '/' and posixpath.dirname(name) == path:
                entries.append(f"drwxr-xr-x 2 ftp ftp 0 Jan 01 00:00 {posixpath.basename(name)}")
        for name, content in sorted(self.files.items()):
            if posixpath.dirname(name) == path:
                entries.append(f"-rw-r--r-- 1 ftp ftp {len(content)} Jan 01 00:00 {posixpath.basename(name)}")
        return ''.join(e + '\r\n' for e in entries).encode('utf-8')


@pytest.fixture
def ftp_server():
    server = FakeFTPServer().start()
    yield server
    server.stop()


@pytest.fixture
def config():
    return ClientConfig(timeout=5, chunk_size=4096)
