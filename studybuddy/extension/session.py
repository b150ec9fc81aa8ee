"""
studybuddy/extension/session.py

Popup-side hint session: which hints have been revealed, how many remain,
and whether the pseudo-code is showing.

State lives in a key-value store under the popup's keys, so closing and
reopening the popup within the same browsing session resumes where the
student left off. Only ``reset()`` clears it. At most one backend call is
in flight per action; the popup disables the button while it waits.
"""

from studybuddy.core.logging import get_logger
from studybuddy.extension.gateway import ClientGateway, HintResponse, PseudoCodeResponse
from studybuddy.extension.models import Hint, HintState, ProblemRecord, PseudoCodeState
from studybuddy.extension.storage import KeyValueStore

logger = get_logger(__name__)

MAX_HINT_REVEALS = 5

HINTS_KEY = "sb_hints"
CURRENT_HINT_INDEX_KEY = "sb_currentHintIndex"
HINTS_REMAINING_KEY = "sb_hintsRemaining"
PSEUDO_CODE_KEY = "sb_pseudoCode"


class HintSession:
    def __init__(self, gateway: ClientGateway, store: KeyValueStore) -> None:
        self._gateway = gateway
        self._store = store
        self.hint_state = self._load_hint_state()
        self.pseudo_code_state = self._load_pseudo_code_state()

    def _load_hint_state(self) -> HintState:
        return HintState(
            hints=[Hint(index=h["index"], text=h["text"]) for h in self._store.get(HINTS_KEY, [])],
            current_index=self._store.get(CURRENT_HINT_INDEX_KEY, 0),
            hints_remaining=self._store.get(HINTS_REMAINING_KEY),
        )

    def _load_pseudo_code_state(self) -> PseudoCodeState:
        stored = self._store.get(PSEUDO_CODE_KEY) or {}
        return PseudoCodeState(
            revealed=stored.get("revealed", False),
            content=stored.get("content", ""),
        )

    def _save(self) -> None:
        state = self.hint_state
        self._store.set(HINTS_KEY, [{"index": h.index, "text": h.text} for h in state.hints])
        self._store.set(CURRENT_HINT_INDEX_KEY, state.current_index)
        self._store.set(HINTS_REMAINING_KEY, state.hints_remaining)
        self._store.set(
            PSEUDO_CODE_KEY,
            {
                "revealed": self.pseudo_code_state.revealed,
                "content": self.pseudo_code_state.content,
            },
        )

    @property
    def all_hints_revealed(self) -> bool:
        return self.hint_state.current_index >= MAX_HINT_REVEALS

    async def next_hint(self, problem: ProblemRecord) -> HintResponse:
        """Reveal the next hint, or report why it could not be revealed."""
        if self.all_hints_revealed:
            return HintResponse(
                success=False,
                hints_remaining=0,
                error="You've seen all available hints. Try implementing the solution!",
            )

        index = self.hint_state.current_index
        response = await self._gateway.request_next_hint(problem, index)
        if not response.success or not response.hint:
            return response

        self.hint_state.hints.append(Hint(index=index + 1, text=response.hint))
        self.hint_state.current_index = index + 1
        self.hint_state.hints_remaining = response.hints_remaining
        self._save()

        logger.info(
            "hint_revealed",
            index=index + 1,
            hints_remaining=response.hints_remaining,
        )
        return response

    async def reveal_pseudo_code(self, problem: ProblemRecord) -> PseudoCodeResponse:
        if self.pseudo_code_state.revealed:
            return PseudoCodeResponse(success=True, pseudo_code=self.pseudo_code_state.content)

        response = await self._gateway.request_pseudo_code(problem)
        if response.success and response.pseudo_code:
            self.pseudo_code_state = PseudoCodeState(revealed=True, content=response.pseudo_code)
            self._save()
        return response

    def reset(self) -> None:
        self.hint_state = HintState()
        self.pseudo_code_state = PseudoCodeState()
        for key in (HINTS_KEY, CURRENT_HINT_INDEX_KEY, HINTS_REMAINING_KEY, PSEUDO_CODE_KEY):
            self._store.remove(key)
        logger.info("hint_session_reset")
