# livechat

Building blocks for a web live chat between customer service agents
("kefu") and the visitors of a website: database models for agents,
visitors, messages, canned replies, settings and IP blocks; a registry of
live connections that pushes JSON messages to agents and visitors; and
request handlers that answer with a uniform JSON envelope.

## Installation

```
pip install livechat
```

With the test dependencies:

```
pip install "livechat[test]"
```

The only required dependency is SQLAlchemy. `MysqlConfig.url()` builds a
`mysql+pymysql://` URL, so to talk to MySQL install the PyMySQL driver
yourself. Any other database SQLAlchemy supports, such as SQLite, works
through `Database` directly.

## Database

`livechat.settings.load_mysql_config(path)` reads a JSON file (by default
`config/mysql.json`) with the keys `Server`, `Port`, `Database`, `Username`
and `Password`. A missing, empty or malformed file gives a `MysqlConfig`
with empty fields.

`livechat.db.connect(config)` takes a `MysqlConfig` or a URL and returns a
`Database`. `Database.session()` is a context manager that commits on
success and rolls back on an exception; `Database.execute(sql)` runs one raw
statement; `Database.create_all()` creates the tables of every model module
that has been imported; `Database.close()` releases the pool.

```python
from livechat.db import Database
from livechat import users, visitors, messages
from livechat.textutil import md5_hex

database = Database("sqlite://")
database.create_all()

password = "password"
with database.session() as session:
    users.create_user(session, "alice", md5_hex(password), "/static/images/4.jpg", "Alice")
    visitors.create_visitor(session, "Guest", "", "10.0.0.1", "alice",
                            "visitor-1", "Direct Link", "", "10.0.0.1", "")
    messages.create_message(session, "alice", "visitor-1", "Hello", "kefu")

with database.session() as session:
    print([m.content for m in messages.find_messages_by_visitor_id(session, "visitor-1")])
```

Model modules and what they store:

- `users`: `User`, `Role`, `UserRole` (users and roles are soft-deleted or
  joined as the lookups describe).
- `visitors`: `Visitor`, plus `count_visitors_every_day` returning
  `DayCount` entries per `yy-mm-dd` day.
- `messages`: `Message` and the joined `MessageView`, with paging and
  "last message per visitor" lookups.
- `configs`: per-agent `Config` key/value entries; `find_config` looks a key
  up in an already loaded list.
- `ipblacks`: blocked addresses (`Ipblack`).
- `abouts`: bilingual site page content (`About`).
- `replies`: canned replies in groups (`ReplyGroup`, `ReplyItem`).
- `clients`: push client ids of agents (`UserClient`).
- `welcomes`: keyword-tagged welcome messages (`Welcome`).

### Initialising from an SQL script

```python
from livechat.installer import install, InstallError

try:
    count = install(database, "import.sql", "install.lock")
except InstallError as exc:
    print(exc)
```

The script is split on `;`, blank statements are skipped and the rest run in
order; the first failure raises `InstallError`. On success the lock file is
written, and while it exists `install` refuses to run again.
`import_sql(database, path)` runs a script without the lock.

## Live connections

`livechat.hub.Hub` keeps connected visitors in `clients` and agents in
`kefus`, each a `ChatUser` whose `conn` is any object with `send(text)` and
`close()`. Messages are JSON envelopes `{"type": ..., "data": ...}` built by
`encode_message`.

- `Hub.add_kefu`, `send_to_kefu`, `kefu_message`, `ping_kefus`,
  `update_visitor_user`, `sync_visitor_status`.
- `Hub.handle_incoming(conn, raw, limiter)` answers `ping` with `pong` and
  relays `inputing` notices to the target agent, at most one per sender
  every 2 seconds.

`livechat.presence` handles visitors: `add_visitor`,
`remove_visitor_connection`, `visitor_online`, `visitor_offline`,
`visitor_notice`, `visitor_message`, `visitor_auto_reply` (a canned reply
whose name matches the message, or the agent's `OfflineMessage` when the
agent is not connected) and `clean_expired_visitors` (idle for 600 seconds
by default).

## Request handlers

`livechat.api_site` and `livechat.api_kefu` hold plain functions that take a
session (and a `Hub` where needed) and return an `ApiResponse` with `code`,
`msg`, `result` and an HTTP `status`. They cover site pages, notices,
settings, roles, a 46-day visitor chart, IP blocking, WeChat signature
checks (`check_weixin_sign`), agent registration and profile changes,
visitor transfers between agents and canned reply management.

## Utilities

- `livechat.ratelimit.LimitQueue`: per-key sliding-window limiter;
  `allow(name, count, window)`; `start_daily_reset` clears it every
  midnight in a daemon thread.
- `livechat.snowflake.Snowflake(worker_id).generate()`: 64-bit unique ids.
- `livechat.textutil`: MD5/SHA-256 hex digests, lenient unpadded base64
  decoding, UUIDs, file existence checks, query-argument lookup.
- `livechat.search` and `livechat.linkedlist`: binary search bounds and
  linked list reversals.

## What this package does not do

There is no HTTP or WebSocket server, no routing, login tokens or
middleware, and no command line program: the handlers and the hub must be
wired into a web framework of your choice. It sends no e-mail, push or
other outbound HTTP notifications, and it has no handlers for sending chat
messages, uploads, visitor login or visitor lists.