"""Wire-record builders and a mock sessions API shared by the tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import httpx

from teleport_analyzer.client import SessionsApiClient

SESSION_ID = 'session_01QJaJSUgfY6khmFTzJaMqph'


def event_record(kind: str, event_id: str, created_at: str | None = None, **fields: Any) -> dict[str, Any]:
    record: dict[str, Any] = {'type': kind, 'id': event_id}
    if created_at is not None:
        record['created_at'] = created_at
    record.update(fields)
    return record


def user_record(event_id: str, content: Any, created_at: str | None = None) -> dict[str, Any]:
    return event_record('user', event_id, created_at, message={'role': 'user', 'content': content})


def assistant_record(event_id: str, blocks: list[dict[str, Any]], created_at: str | None = None) -> dict[str, Any]:
    return event_record('assistant', event_id, created_at, message={'role': 'assistant', 'content': blocks})


def sample_records() -> list[dict[str, Any]]:
    """One well-formed record of every known kind plus one unknown kind."""
    return [
        event_record(
            'system',
            'evt_01',
            '2025-06-01T10:00:00Z',
            subtype='init',
            model='claude-sonnet-4',
            cwd='/workspace/repo',
            tools=['Bash', 'Read'],
        ),
        user_record('evt_02', 'Please run the Cargo Test suite', '2025-06-01T10:00:01Z'),
        assistant_record(
            'evt_03',
            [
                {'type': 'thinking', 'thinking': 'The user wants tests run.', 'signature': 'sig'},
                {'type': 'text', 'text': 'Running the tests now.'},
                {'type': 'tool_use', 'id': 'toolu_01', 'name': 'Bash', 'input': {'command': 'cargo test'}},
            ],
            '2025-06-01T10:00:02Z',
        ),
        event_record(
            'tool_progress',
            'evt_04',
            '2025-06-01T10:00:03Z',
            tool_name='Bash',
            tool_use_id='toolu_01',
            elapsed_time_seconds=2.5,
        ),
        user_record(
            'evt_05',
            [{'type': 'tool_result', 'tool_use_id': 'toolu_01', 'content': 'test result: ok. 12 passed'}],
            '2025-06-01T10:00:04Z',
        ),
        event_record(
            'tool_use_summary',
            'evt_06',
            '2025-06-01T10:00:05Z',
            summary='Ran the test suite',
            preceding_tool_use_ids=['toolu_01'],
        ),
        event_record(
            'env_manager_log',
            'evt_07',
            '2025-06-01T10:00:06Z',
            data={'category': 'git', 'content': 'Cloned repository', 'level': 'info'},
        ),
        event_record(
            'control_response',
            'evt_08',
            '2025-06-01T10:00:07Z',
            response={'subtype': 'success', 'request_id': 'req_1'},
        ),
        event_record(
            'result',
            'evt_09',
            '2025-06-01T10:00:08Z',
            subtype='success',
            duration_ms=8000,
            num_turns=2,
            is_error=False,
            result='All tests passed',
        ),
        event_record(
            'sandbox_snapshot',
            'evt_10',
            '2025-06-01T10:00:09Z',
            snapshot={'disk_mb': 512, 'files': ['a.rs', 'b.rs']},
        ),
    ]


def session_record(session_id: str = SESSION_ID, created_at: str | None = None, **fields: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        'id': session_id,
        'title': 'Fix flaky tests',
        'session_status': 'completed',
        'type': 'remote',
        'updated_at': '2025-06-02T09:30:00Z',
        'session_context': {
            'model': 'claude-sonnet-4',
            'cwd': '/workspace/repo',
            'sources': [{'type': 'git_repository', 'url': 'https://github.com/acme/widgets', 'revision': 'abc123'}],
            'outcomes': [
                {
                    'type': 'git_repository',
                    'git_info': {'type': 'github', 'repo': 'acme/widgets', 'branches': ['fix/tests']},
                }
            ],
        },
    }
    if created_at is not None:
        record['created_at'] = created_at
    record.update(fields)
    return record


# ==============================================================================
# Mock API
# ==============================================================================


class MockSessionsApi:
    """
    In-memory stand-in for the sessions API, served through httpx.MockTransport.

    Events are served in pages; each page's last_id is the cursor for the next one.
    """

    def __init__(
        self,
        pages: Sequence[Sequence[dict[str, Any]]] = (),
        sessions: Sequence[dict[str, Any]] = (),
        loglines: Sequence[dict[str, Any]] = (),
        known_session: str = SESSION_ID,
    ) -> None:
        self.pages = [list(page) for page in pages]
        self.sessions = list(sessions)
        self.loglines = list(loglines)
        self.known_session = known_session
        self.requests: list[httpx.Request] = []
        self.overrides: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    @property
    def event_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith('/events')]

    def _events_page(self, request: httpx.Request) -> httpx.Response:
        after_id = request.url.params.get('after_id')
        index = 0
        if after_id is not None:
            index = next(i for i, page in enumerate(self.pages) if page and page[-1]['id'] == after_id) + 1
        page = self.pages[index] if index < len(self.pages) else []
        return httpx.Response(
            200,
            json={
                'data': page,
                'first_id': page[0]['id'] if page else None,
                'last_id': page[-1]['id'] if page else None,
                'has_more': index < len(self.pages) - 1,
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.overrides:
            return self.overrides[path](request)

        if path == '/api/oauth/profile':
            return httpx.Response(200, json={'organization': {'uuid': 'org-uuid-1'}, 'account': {'email': 'a@b.c'}})
        if path == '/v1/sessions':
            return httpx.Response(200, json={'data': self.sessions})

        session_id = path.split('/')[-1] if not path.endswith('/events') else path.split('/')[-2]
        if session_id != self.known_session:
            return httpx.Response(404, json={'error': {'type': 'not_found_error', 'message': 'Session not found'}})
        if path.endswith('/events'):
            return self._events_page(request)
        if path.startswith('/v1/session_ingress/session/'):
            return httpx.Response(200, json={'loglines': self.loglines})
        if path.startswith('/v1/sessions/'):
            return httpx.Response(200, json=session_record(session_id, '2025-06-01T10:00:00Z'))
        return httpx.Response(500, text='unexpected path')

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> SessionsApiClient:
        return SessionsApiClient('test-token', 'org-uuid-1', transport=self.transport)
