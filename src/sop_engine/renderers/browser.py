"""
Browser renderer - Template Builder HTML printed by headless Chromium.

Each render owns exactly one BrowserSession. The session is driven from a
worker thread while the calling thread waits on a single deadline derived
from the caller's timeout. When the deadline passes first, the session is
aborted and RenderTimeoutError is raised immediately; the worker closes
the browser as soon as its current Playwright call returns, which every
Playwright timeout bounds by the same deadline.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional, Sequence

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from ..config import RenderConfig
from ..errors import RenderError, RenderTimeoutError
from ..models import DocumentType, GenerationOptions, PageOptions
from ..template_builder import TemplateBuilder
from .base import BackendKind, Renderer, RenderData

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    One headless Chromium process.

    open() starts Playwright and launches the browser; close() is safe to
    call at any point, including after a failed open(). Playwright objects
    belong to the thread that opened them, so only abort() may be called
    from another thread.
    """

    def __init__(self, launch_args: Sequence[str] = (), headless: bool = True):
        self.launch_args = list(launch_args)
        self.headless = headless
        self._playwright = None
        self._browser = None
        self._aborted = threading.Event()
        self.closed = False

    @property
    def is_open(self) -> bool:
        return self._browser is not None and not self.closed

    @property
    def aborted(self) -> bool:
        return self._aborted.is_set()

    def open(self, timeout_ms: float):
        self._check_aborted()
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.headless,
            args=self.launch_args,
            timeout=timeout_ms,
        )

    def render_pdf(self, html: str, page_options: PageOptions, deadline: float, network_idle_timeout_ms: int) -> bytes:
        """Load HTML, wait for the network to settle and print to PDF."""
        self._check_aborted()
        page = self._browser.new_page()
        page.set_default_timeout(_remaining_ms(deadline))
        page.set_content(
            html,
            wait_until="networkidle",
            timeout=min(_remaining_ms(deadline), network_idle_timeout_ms),
        )
        self._check_aborted()
        _remaining_ms(deadline)
        return page.pdf(
            format=page_options.format,
            landscape=page_options.landscape,
            margin=page_options.margins_css(),
            print_background=True,
        )

    def abort(self):
        """Ask the owning thread to stop at its next step. Thread-safe."""
        self._aborted.set()

    def _check_aborted(self):
        if self._aborted.is_set():
            raise PlaywrightTimeoutError("Render aborted after the deadline")

    def close(self):
        """Shut the browser down and stop Playwright."""
        try:
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as e:
            logger.warning(f"Browser close failed: {e}")
        finally:
            self._browser = None
            if self._playwright is not None:
                self._playwright.stop()
                self._playwright = None
            self.closed = True

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def _remaining_ms(deadline: float) -> float:
    remaining = (deadline - time.monotonic()) * 1000
    if remaining <= 0:
        raise PlaywrightTimeoutError("Render deadline exceeded")
    return remaining


def _drive_session(session: BrowserSession, html: str, page_options: PageOptions,
                   deadline: float, network_idle_timeout_ms: int) -> bytes:
    """Open, print and close one session on the current thread."""
    try:
        session.open(timeout_ms=_remaining_ms(deadline))
        return session.render_pdf(html, page_options, deadline, network_idle_timeout_ms)
    finally:
        session.close()


SessionFactory = Callable[[Sequence[str]], BrowserSession]


class BrowserRenderer(Renderer):
    """
    Renders SOP documents through the HTML template and Chromium.
    """

    kind = BackendKind.BROWSER

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        template_builder: Optional[TemplateBuilder] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        super().__init__()
        self.config = config or RenderConfig()
        self.template_builder = template_builder or TemplateBuilder()
        self.session_factory = session_factory or BrowserSession

    def render(self, document_type: DocumentType, data: RenderData, options: GenerationOptions) -> bytes:
        if data.sop is None:
            raise RenderError(
                f"Browser rendering needs SOP data, none available for {document_type.value}",
                backend=self.kind.value,
            )

        html = self.template_builder.build(data.sop, data.branding, year=data.generated_at.year)
        timeout = options.timeout_seconds or self.config.browser_timeout_seconds
        deadline = time.monotonic() + timeout

        session = self.session_factory(self.config.browser_args)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sop-browser")
        future = executor.submit(
            _drive_session, session, html, options.page, deadline, self.config.network_idle_timeout_ms,
        )
        try:
            pdf = future.result(timeout=max(deadline - time.monotonic(), 0))
        except FutureTimeoutError as e:
            session.abort()
            raise RenderTimeoutError(
                f"Browser render timed out after {timeout}s",
                backend=self.kind.value,
                timeout_seconds=timeout,
            ) from e
        except PlaywrightTimeoutError as e:
            raise RenderTimeoutError(
                f"Browser render timed out after {timeout}s: {e}",
                backend=self.kind.value,
                timeout_seconds=timeout,
            ) from e
        except PlaywrightError as e:
            raise RenderError(f"Browser render failed: {e}", backend=self.kind.value) from e
        finally:
            executor.shutdown(wait=False)

        self.logger.debug(f"Browser rendered {document_type.value}: {len(pdf)} bytes")
        return pdf
