#!/usr/bin/env python3
"""
Fake bulletin service for local development and testing.

Implements the JSON API that bulletin_board.client.BulletinClient speaks:
- Context (role and rosters), categories, status vocabularies
- Suggestion and Support lists with filters
- Record detail, create, status/description/owner updates
- Comment threads

Run with: python scripts/fake_bulletin.py --port 9010 [--admin]
Then set api_base in bulletin.yaml to "http://127.0.0.1:9010/api/bulletin"
"""

import argparse
import json
import secrets
from datetime import UTC, datetime
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

API_PREFIX = "/api/bulletin"

FAKE_USERS = {
    "005A": "Ada Admin",
    "005B": "Ben Builder",
    "005C": "Cora Clerk",
}
ADMIN_IDS = ["005A"]

# Current user; --user and --admin change it at startup
SESSION = {"user_id": "005B"}

CATEGORIES = [
    {"id": "cat1", "name": "Hardware"},
    {"id": "cat2", "name": "Software"},
    {"id": "cat3", "name": "Facilities"},
]

STATUSES = {
    "Suggestion": ["Under Review", "Accepted", "Rejected", "Implemented"],
    "Support Request": ["New", "In Review", "In Progress", "Done", "Closed"],
}


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


RECORDS: dict[str, dict] = {
    "rec1": {
        "id": "rec1",
        "recordNumber": "SUG-0001",
        "type": "Suggestion",
        "title": "Standing desks for the lab",
        "descriptionHtml": "<p>Could we trial two standing desks?</p>",
        "status": "Under Review",
        "createdById": "005B",
        "createdByName": FAKE_USERS["005B"],
        "createdDate": "2024-03-01T09:00:00+00:00",
        "updatedDate": "2024-03-02T10:00:00+00:00",
        "categories": ["Facilities"],
    },
    "rec2": {
        "id": "rec2",
        "recordNumber": "SUP-0001",
        "type": "Support Request",
        "title": "Printer on 2nd floor jams",
        "descriptionHtml": "<p>Jams on every duplex job.</p>",
        "status": "In Progress",
        "priority": "High",
        "ownerId": "005A",
        "ownerName": FAKE_USERS["005A"],
        "createdById": "005C",
        "createdByName": FAKE_USERS["005C"],
        "createdDate": "2024-03-03T11:00:00+00:00",
        "updatedDate": "2024-03-04T08:30:00+00:00",
        "categories": ["Hardware"],
    },
}

COMMENTS: dict[str, list[dict]] = {
    "rec2": [
        {
            "id": "cmt1",
            "requestId": "rec2",
            "body": "Replaced the roller, watching it.",
            "createdByName": FAKE_USERS["005A"],
            "createdDate": "2024-03-04T08:30:00+00:00",
        }
    ]
}


def is_admin() -> bool:
    return SESSION["user_id"] in ADMIN_IDS


def with_comment_count(record: dict) -> dict:
    return {**record, "commentCount": len(COMMENTS.get(record["id"], []))}


def matches(record: dict, params: dict[str, str]) -> bool:
    """Apply the list filter payload to one record."""
    search = params.get("search", "").lower()
    if search and search not in record["title"].lower():
        return False
    if params.get("status") and record["status"] != params["status"]:
        return False
    if params.get("categoryName") and params["categoryName"] not in record["categories"]:
        return False

    scope = params.get("ownerScope", "ANY")
    # Suggestions are scoped by submitter, Support Requests by owner
    who = record.get("createdById") if record["type"] == "Suggestion" else record.get("ownerId")
    if record["type"] == "Support Request" and not is_admin():
        scope = "ANY"
    if scope == "ME":
        return who == SESSION["user_id"]
    if scope == "UNASSIGNED":
        return not record.get("ownerId")
    if scope.startswith("USER:"):
        return who == scope[len("USER:") :]
    return True


class FakeBulletinHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the fake bulletin API."""

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        """Override to add prefix."""
        print(f"[FakeBulletin] {args[0]}")

    def send_json(self, data, status: int = 200) -> None:
        """Send a JSON response."""
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def send_error_json(self, status: int, message: str) -> None:
        self.send_json({"message": message}, status=status)

    def read_json(self) -> dict:
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length).decode() if content_length > 0 else ""
        return json.loads(body) if body else {}

    def route(self) -> tuple[str, dict[str, str]]:
        parsed = urlparse(self.path)
        path = parsed.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX) :]
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        return path, params

    def do_GET(self) -> None:
        """Handle GET requests."""
        path, params = self.route()
        parts = path.strip("/").split("/")

        if path == "/context":
            self.send_json(
                {
                    "isAdmin": is_admin(),
                    "userId": SESSION["user_id"],
                    "adminUsers": [{"id": i, "name": FAKE_USERS[i]} for i in ADMIN_IDS],
                    "bulletinUsers": [{"id": i, "name": n} for i, n in FAKE_USERS.items()],
                }
            )
        elif path == "/categories":
            self.send_json(CATEGORIES)
        elif path == "/categories/names":
            self.send_json([c["name"] for c in CATEGORIES])
        elif path == "/statuses":
            names = STATUSES.get(params.get("type", ""), [])
            self.send_json([{"id": f"st{i}", "name": n} for i, n in enumerate(names)])
        elif path == "/support/owners":
            self.send_json([{"id": i, "name": FAKE_USERS[i]} for i in ADMIN_IDS])
        elif path in ("/suggestions", "/support"):
            record_type = "Suggestion" if path == "/suggestions" else "Support Request"
            page_size = int(params.get("pageSize", "50"))
            rows = [
                with_comment_count(r)
                for r in RECORDS.values()
                if r["type"] == record_type and matches(r, params)
            ]
            rows.sort(key=lambda r: r["updatedDate"], reverse=True)
            self.send_json(rows[:page_size])
        elif len(parts) == 2 and parts[0] == "requests":
            record = RECORDS.get(parts[1])
            if record is None:
                self.send_error_json(404, f"Record {parts[1]} not found")
            else:
                self.send_json(with_comment_count(record))
        elif len(parts) == 3 and parts[0] == "requests" and parts[2] == "comments":
            self.send_json(COMMENTS.get(parts[1], []))
        else:
            self.send_error_json(404, f"Unknown endpoint: {path}")

    def do_POST(self) -> None:
        """Handle POST requests."""
        path, _ = self.route()
        parts = path.strip("/").split("/")
        data = self.read_json()

        if path == "/requests":
            self.handle_create(data)
        elif len(parts) == 3 and parts[0] == "requests" and parts[2] == "comments":
            if parts[1] not in RECORDS:
                self.send_error_json(404, f"Record {parts[1]} not found")
                return
            body = (data.get("body") or "").strip()
            if not body:
                self.send_error_json(400, "Comment body is required")
                return
            comment = {
                "id": secrets.token_hex(6),
                "requestId": parts[1],
                "body": body,
                "createdByName": FAKE_USERS[SESSION["user_id"]],
                "createdDate": now_iso(),
            }
            COMMENTS.setdefault(parts[1], []).append(comment)
            self.send_json(comment, status=201)
        else:
            self.send_error_json(404, f"Unknown endpoint: {path}")

    def do_PATCH(self) -> None:
        """Handle PATCH requests."""
        path, _ = self.route()
        parts = path.strip("/").split("/")
        if len(parts) != 3 or parts[0] != "requests":
            self.send_error_json(404, f"Unknown endpoint: {path}")
            return

        record = RECORDS.get(parts[1])
        if record is None:
            self.send_error_json(404, f"Record {parts[1]} not found")
            return

        data = self.read_json()
        field = parts[2]
        if field == "status":
            if not is_admin():
                self.send_error_json(403, "Only admins can change status")
                return
            if data.get("status") not in STATUSES[record["type"]]:
                self.send_error_json(400, f"Invalid status: {data.get('status')}")
                return
            record["status"] = data["status"]
        elif field == "owner":
            if not is_admin() or record["type"] != "Support Request":
                self.send_error_json(403, "Owner can only be set on Support Requests by admins")
                return
            owner_id = data.get("ownerId")
            record["ownerId"] = owner_id
            record["ownerName"] = FAKE_USERS.get(owner_id) if owner_id else None
        elif field == "description":
            if not is_admin() and record["createdById"] != SESSION["user_id"]:
                self.send_error_json(403, "Only admins or the submitter can edit")
                return
            record["descriptionHtml"] = data.get("bodyHtml") or ""
        else:
            self.send_error_json(404, f"Unknown field: {field}")
            return

        record["updatedDate"] = now_iso()
        self.send_json(with_comment_count(record))

    def handle_create(self, data: dict) -> None:
        record_type = data.get("type")
        if record_type not in STATUSES:
            self.send_error_json(400, "Type must be Suggestion or Support Request")
            return
        names = {c["id"]: c["name"] for c in CATEGORIES}
        categories = [names[c] for c in data.get("categoryIds", []) if c in names]
        if not categories:
            self.send_error_json(400, "At least one category is required")
            return

        prefix = "SUG" if record_type == "Suggestion" else "SUP"
        number = sum(1 for r in RECORDS.values() if r["type"] == record_type) + 1
        record_id = f"rec{secrets.token_hex(4)}"
        record = {
            "id": record_id,
            "recordNumber": f"{prefix}-{number:04d}",
            "type": record_type,
            "title": (data.get("title") or "").strip() or "New request",
            "descriptionHtml": data.get("bodyHtml") or "",
            "status": STATUSES[record_type][0],
            "createdById": SESSION["user_id"],
            "createdByName": FAKE_USERS[SESSION["user_id"]],
            "createdDate": now_iso(),
            "updatedDate": now_iso(),
            "categories": categories,
        }
        if record_type == "Support Request":
            record["priority"] = "Medium"
        RECORDS[record_id] = record
        self.send_json(with_comment_count(record), status=201)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run fake bulletin service")
    parser.add_argument(
        "--port",
        type=int,
        default=9010,
        help="Port to listen on (default: 9010)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument("--user", choices=sorted(FAKE_USERS), help="Act as this user")
    parser.add_argument("--admin", action="store_true", help="Act as the admin user")
    args = parser.parse_args()

    if args.admin:
        SESSION["user_id"] = ADMIN_IDS[0]
    elif args.user:
        SESSION["user_id"] = args.user

    server = HTTPServer((args.host, args.port), FakeBulletinHandler)
    print(f"Fake bulletin service running at http://{args.host}:{args.port}{API_PREFIX}")
    print(f"Acting as {FAKE_USERS[SESSION['user_id']]} (admin={is_admin()})")
    print()

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()


if __name__ == "__main__":
    main()
