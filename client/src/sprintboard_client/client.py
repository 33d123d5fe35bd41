"""SprintboardClient -- async and sync client for the sprintboard REST API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, cast

import httpx


@dataclass
class CreatedSession:
    session_id: str
    admin_token: str
    message: str = ""


@dataclass
class StorySnapshot:
    id: int | None
    description: str
    last_updated: int = 0


@dataclass
class VotesSnapshot:
    votes: dict[str, str] = field(default_factory=dict)
    is_revealed: bool = False
    last_updated: int = 0
    vote_count: int = 0


@dataclass
class PokerSessionInfo:
    session_id: str
    has_active_story: bool
    active_story: dict[str, Any] | None
    is_admin: bool


@dataclass
class MeetingSnapshot:
    id: int
    title: str
    last_updated: int
    column_count: int
    item_count: int
    columns: list[dict[str, Any]] = field(default_factory=list)
    is_active: bool = True
    created_at: int = 0


@dataclass
class RetroSessionInfo:
    session_id: str
    has_active_meeting: bool
    active_meeting: MeetingSnapshot | None
    is_admin: bool


class SprintboardAPIError(Exception):
    """Error from the sprintboard API."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


def _created(data: dict[str, Any]) -> CreatedSession:
    return CreatedSession(
        session_id=data["sessionId"],
        admin_token=data["adminToken"],
        message=data.get("message", ""),
    )


def _story(data: dict[str, Any]) -> StorySnapshot:
    return StorySnapshot(
        id=data.get("id"),
        description=data.get("description", ""),
        last_updated=data.get("lastUpdated", 0),
    )


def _votes(data: dict[str, Any]) -> VotesSnapshot:
    votes = data.get("votes", {})
    return VotesSnapshot(
        votes=votes,
        is_revealed=data.get("isRevealed", False),
        last_updated=data.get("lastUpdated", 0),
        vote_count=data.get("voteCount", len(votes)),
    )


def _meeting(data: dict[str, Any] | None) -> MeetingSnapshot | None:
    if data is None:
        return None
    return MeetingSnapshot(
        id=data["id"],
        title=data["title"],
        last_updated=data.get("lastUpdated", 0),
        column_count=data.get("columnCount", len(data.get("columns", []))),
        item_count=data.get("itemCount", 0),
        columns=data.get("columns", []),
        is_active=data.get("isActive", True),
        created_at=data.get("createdAt", 0),
    )


class SprintboardClient:
    """Client for the sprintboard REST API.

    Provides both async and sync interfaces.

    Usage (async)::

        async with SprintboardClient("http://localhost:8080") as client:
            created = await client.create_poker_session()
            await client.set_story(created.session_id, "Login page", created.admin_token)

    Usage (sync)::

        client = SprintboardClient("http://localhost:8080")
        print(client.votes_sync("global").votes)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._async_client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout)
        self._sync_client = httpx.Client(base_url=self._base_url, timeout=timeout)

    async def __aenter__(self) -> SprintboardClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._async_client.aclose()

    def close(self) -> None:
        self._sync_client.close()

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            try:
                detail = response.json().get("error", response.text)
            except ValueError:
                detail = response.text
            raise SprintboardAPIError(response.status_code, detail)

    async def _get(self, path: str, **kwargs: Any) -> Any:
        resp = await self._async_client.get(path, **kwargs)
        self._raise_for_status(resp)
        return resp.json()

    async def _send(self, method: str, path: str, body: dict[str, Any]) -> Any:
        resp = await self._async_client.request(method, path, json=body)
        self._raise_for_status(resp)
        return resp.json()

    # -- Poker -----------------------------------------------------------------

    async def create_poker_session(self) -> CreatedSession:
        return _created(await self._send("POST", "/api/poker-session/create", {}))

    async def poker_session(
        self, session_id: str, admin_token: str | None = None
    ) -> PokerSessionInfo:
        params = {"adminToken": admin_token} if admin_token else None
        data = await self._get(f"/api/poker-session/{session_id}", params=params)
        return PokerSessionInfo(
            session_id=data["sessionId"],
            has_active_story=data["hasActiveStory"],
            active_story=data.get("activeStory"),
            is_admin=data["isAdmin"],
        )

    async def verify_poker_admin(self, session_id: str, admin_token: str) -> bool:
        data = await self._send(
            "POST", f"/api/poker-session/{session_id}", {"adminToken": admin_token}
        )
        return bool(data["isValid"])

    async def story(self, session_id: str) -> StorySnapshot:
        return _story(await self._get(f"/api/poker-session/{session_id}/story"))

    async def set_story(
        self, session_id: str, description: str, admin_token: str | None
    ) -> StorySnapshot:
        data = await self._send(
            "POST",
            f"/api/poker-session/{session_id}/story",
            {"description": description, "adminToken": admin_token},
        )
        return _story(data)

    async def votes(self, session_id: str) -> VotesSnapshot:
        return _votes(await self._get(f"/api/poker-session/{session_id}/votes"))

    async def vote(self, session_id: str, voter_name: str, vote_value: str) -> dict[str, str]:
        data = await self._send(
            "POST",
            f"/api/poker-session/{session_id}/votes",
            {"voterName": voter_name, "voteValue": vote_value},
        )
        return cast("dict[str, str]", data)

    async def reveal(self, session_id: str, admin_token: str | None) -> dict[str, Any]:
        data = await self._send(
            "POST", f"/api/poker-session/{session_id}/reveal", {"adminToken": admin_token}
        )
        return cast("dict[str, Any]", data)

    async def reset(self, session_id: str, admin_token: str | None) -> dict[str, Any]:
        data = await self._send(
            "POST", f"/api/poker-session/{session_id}/reset", {"adminToken": admin_token}
        )
        return cast("dict[str, Any]", data)

    async def new_story(
        self,
        session_id: str,
        admin_token: str | None,
        description: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"adminToken": admin_token}
        if description:
            body["description"] = description
        data = await self._send("POST", f"/api/poker-session/{session_id}/new-story", body)
        return cast("dict[str, Any]", data)

    # -- Retro -----------------------------------------------------------------

    async def create_retro_session(self) -> CreatedSession:
        return _created(await self._send("POST", "/api/retro-session/create", {}))

    async def retro_session(
        self, session_id: str, admin_token: str | None = None
    ) -> RetroSessionInfo:
        params = {"adminToken": admin_token} if admin_token else None
        data = await self._get(f"/api/retro-session/{session_id}", params=params)
        return RetroSessionInfo(
            session_id=data["sessionId"],
            has_active_meeting=data["hasActiveMeeting"],
            active_meeting=_meeting(data.get("activeMeeting")),
            is_admin=data["isAdmin"],
        )

    async def verify_retro_admin(self, session_id: str, admin_token: str) -> bool:
        data = await self._send(
            "POST", f"/api/retro-session/{session_id}", {"adminToken": admin_token}
        )
        return bool(data["isValid"])

    async def meeting(self, session_id: str) -> MeetingSnapshot | None:
        return _meeting(await self._get(f"/api/retro-session/{session_id}/meeting"))

    async def create_meeting(
        self,
        session_id: str,
        admin_token: str | None,
        *,
        columns: list[str] | None = None,
        title: str | None = None,
    ) -> MeetingSnapshot:
        body: dict[str, Any] = {"adminToken": admin_token}
        if columns:
            body["columns"] = columns
        if title:
            body["title"] = title
        data = await self._send("POST", f"/api/retro-session/{session_id}/meeting", body)
        return cast("MeetingSnapshot", _meeting(data))

    async def rename_meeting(
        self, session_id: str, title: str, admin_token: str | None
    ) -> MeetingSnapshot:
        data = await self._send(
            "PUT",
            f"/api/retro-session/{session_id}/meeting",
            {"title": title, "adminToken": admin_token},
        )
        return cast("MeetingSnapshot", _meeting(data))

    async def add_column(
        self, session_id: str, title: str, admin_token: str | None
    ) -> dict[str, Any]:
        data = await self._send(
            "POST",
            f"/api/retro-session/{session_id}/columns",
            {"title": title, "adminToken": admin_token},
        )
        return cast("dict[str, Any]", data)

    async def rename_column(
        self, session_id: str, column_id: int, title: str, admin_token: str | None
    ) -> dict[str, Any]:
        data = await self._send(
            "PUT",
            f"/api/retro-session/{session_id}/columns",
            {"columnId": column_id, "title": title, "adminToken": admin_token},
        )
        return cast("dict[str, Any]", data)

    async def delete_column(
        self, session_id: str, column_id: int, admin_token: str | None
    ) -> None:
        await self._send(
            "DELETE",
            f"/api/retro-session/{session_id}/columns",
            {"columnId": column_id, "adminToken": admin_token},
        )

    async def add_item(
        self, session_id: str, column_id: int, content: str, author_name: str
    ) -> dict[str, Any]:
        data = await self._send(
            "POST",
            f"/api/retro-session/{session_id}/items",
            {"columnId": column_id, "content": content, "authorName": author_name},
        )
        return cast("dict[str, Any]", data)

    async def edit_item(self, session_id: str, item_id: int, content: str) -> dict[str, Any]:
        data = await self._send(
            "PUT",
            f"/api/retro-session/{session_id}/items",
            {"itemId": item_id, "content": content},
        )
        return cast("dict[str, Any]", data)

    async def delete_item(self, session_id: str, item_id: int) -> None:
        await self._send(
            "DELETE", f"/api/retro-session/{session_id}/items", {"itemId": item_id}
        )

    async def health(self) -> bool:
        try:
            resp = await self._async_client.get("/api/health")
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

    # -- Sync wrappers ---------------------------------------------------------

    def create_poker_session_sync(self) -> CreatedSession:
        resp = self._sync_client.post("/api/poker-session/create", json={})
        self._raise_for_status(resp)
        return _created(resp.json())

    def create_retro_session_sync(self) -> CreatedSession:
        resp = self._sync_client.post("/api/retro-session/create", json={})
        self._raise_for_status(resp)
        return _created(resp.json())

    def story_sync(self, session_id: str) -> StorySnapshot:
        resp = self._sync_client.get(f"/api/poker-session/{session_id}/story")
        self._raise_for_status(resp)
        return _story(resp.json())

    def votes_sync(self, session_id: str) -> VotesSnapshot:
        resp = self._sync_client.get(f"/api/poker-session/{session_id}/votes")
        self._raise_for_status(resp)
        return _votes(resp.json())

    def vote_sync(self, session_id: str, voter_name: str, vote_value: str) -> dict[str, str]:
        resp = self._sync_client.post(
            f"/api/poker-session/{session_id}/votes",
            json={"voterName": voter_name, "voteValue": vote_value},
        )
        self._raise_for_status(resp)
        return cast("dict[str, str]", resp.json())

    def meeting_sync(self, session_id: str) -> MeetingSnapshot | None:
        resp = self._sync_client.get(f"/api/retro-session/{session_id}/meeting")
        self._raise_for_status(resp)
        return _meeting(resp.json())

    def health_sync(self) -> bool:
        try:
            resp = self._sync_client.get("/api/health")
            return resp.status_code == 200
        except httpx.HTTPError:
            return False
