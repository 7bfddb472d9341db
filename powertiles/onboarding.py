"""
First-run welcome and tutorial flow.

The flow is shown until the player either walks through every tutorial step or skips it; the
"tutorial seen" flag is then saved and the first game starts.
"""

import logging
from collections.abc import Callable
from enum import Enum
from typing import NamedTuple

from powertiles.storage import KeyValueStore, SafeStore

# ##>: Settings key of the tutorial flag.
TUTORIAL_SEEN_KEY = '2048-tutorial-seen'

_logger = logging.getLogger(__name__)


class TutorialStep(NamedTuple):
    """One page of the tutorial; ``highlight`` names the interface area it points at."""

    title: str
    description: str
    highlight: str | None = None


TUTORIAL_STEPS: tuple[TutorialStep, ...] = (
    TutorialStep(
        'Welcome to 2048!',
        'This is a number puzzle game. Your goal is to merge matching number tiles until you reach 2048!',
    ),
    TutorialStep(
        'How to Move',
        'Use arrow keys or WASD keys to move tiles. All tiles will slide in the same direction.',
        'game-board',
    ),
    TutorialStep(
        'Merging Tiles',
        'When two tiles with the same number touch, they merge into one bigger number! For example: 2+2=4, 4+4=8.',
    ),
    TutorialStep(
        'Scoring System',
        'Every time you merge tiles, you earn points. The score equals the value of the merged tile.',
        'score-section',
    ),
    TutorialStep(
        'Powerup Features',
        'You have special powerups to help: undo last move, swap two tiles, delete tiles by number.',
        'powerups-section',
    ),
    TutorialStep(
        'Start Playing!',
        'Now you know all the basics. Try moving tiles and aim to reach 2048! Good luck!',
    ),
)


class OnboardingStage(str, Enum):
    WELCOME = 'welcome'
    TUTORIAL = 'tutorial'
    DONE = 'done'


class Onboarding:
    """
    Welcome prompt followed by an optional step-by-step tutorial.

    Parameters
    ----------
    store : KeyValueStore, optional
        Settings backend holding the "tutorial seen" flag.
    on_complete : Callable[[], object], optional
        Called once when the flow finishes, typically ``GameSession.new_game``.
    steps : tuple[TutorialStep, ...], optional
        Tutorial pages (default is ``TUTORIAL_STEPS``).
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        on_complete: Callable[[], object] | None = None,
        steps: tuple[TutorialStep, ...] = TUTORIAL_STEPS,
    ):
        self._store = SafeStore.wrap(store)
        self._on_complete = on_complete
        self.steps = steps
        self.step_index = 0
        self.stage = OnboardingStage.DONE if self._store.get(TUTORIAL_SEEN_KEY) else OnboardingStage.WELCOME

    @property
    def is_modal(self) -> bool:
        """Whether the flow is on screen and game input must be ignored."""
        return self.stage is not OnboardingStage.DONE

    @property
    def current_step(self) -> TutorialStep | None:
        if self.stage is not OnboardingStage.TUTORIAL:
            return None
        return self.steps[self.step_index]

    def start_tutorial(self) -> bool:
        """
        Show the first tutorial step.

        Accepts the welcome prompt, or replays the tutorial once the flow is done; finishing
        or skipping a replay starts a new game again.
        """
        if self.stage is OnboardingStage.TUTORIAL:
            return False
        self.stage = OnboardingStage.TUTORIAL
        self.step_index = 0
        return True

    def dismiss_welcome(self) -> bool:
        """Close the welcome prompt without the tutorial."""
        if self.stage is not OnboardingStage.WELCOME:
            return False
        self._complete()
        return True

    def next_step(self) -> bool:
        """Advance the tutorial; leaving the last step completes the flow."""
        if self.stage is not OnboardingStage.TUTORIAL:
            return False
        if self.step_index < len(self.steps) - 1:
            self.step_index += 1
        else:
            self._complete()
        return True

    def skip(self) -> bool:
        """Close the welcome prompt or the tutorial without going through it."""
        if self.stage is OnboardingStage.DONE:
            return False
        self._complete()
        return True

    def _complete(self) -> None:
        self.stage = OnboardingStage.DONE
        self._store.set(TUTORIAL_SEEN_KEY, 'true')
        _logger.debug('Onboarding completed')
        if self._on_complete is not None:
            self._on_complete()
