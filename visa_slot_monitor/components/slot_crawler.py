"""
Playwright automation for the medical visa booking site.

This module drives a headless browser through the booking site's location
search and turns the location table into availability records. It is a thin
wrapper; all classification happens downstream.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from playwright.async_api import Browser, Page, Playwright, async_playwright

from ..models.availability import (
    AvailabilityRecord,
    CrawlResult,
    SearchQuery,
    SearchResult,
)
from ..models.config import CrawlerSettings
from ..utils.error_handling import CrawlError
from ..utils.logging import ComponentLogger
from .report_generator import ReportGenerator

INDIVIDUAL_BOOKING_BUTTON = "button#ContentPlaceHolder1_btnInd"
POSTCODE_INPUT = "input#ContentPlaceHolder1_SelectLocation1_txtSuburb"
STATE_SELECT = "select#ContentPlaceHolder1_SelectLocation1_ddlState"
SEARCH_BUTTON = "div.postcode-search input.blue-button[value='Search']"
LOCATION_ROW = "tr.trlocation"
SESSION_RESET_PATH = "oasis/"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

EXTRACT_ROWS_SCRIPT = """
rows => rows.map(row => {
  const text = sel => (row.querySelector(sel)?.textContent || "").trim();
  const radio = row.querySelector("input.rbLocation");
  return {
    id: radio ? radio.value : "",
    name: text(".tdlocNameTitle"),
    address_block: text(".tdloc_name span"),
    distance: text(".td-distance span"),
    availability: text(".tdloc_availability span"),
  };
})
"""


def parse_location_row(
    row: Mapping[str, Any], search_query: Optional[SearchQuery] = None
) -> AvailabilityRecord:
    """
    Convert one raw location table row into an availability record.

    The address cell holds the centre name on its first line and the street
    address on the following lines.
    """
    name = str(row.get("name") or "").strip()
    address_lines = [
        line.strip()
        for line in str(row.get("address_block") or "").splitlines()
        if line.strip()
    ]
    availability = str(row.get("availability") or "").strip()

    return AvailabilityRecord(
        id=str(row.get("id") or ""),
        name=name,
        full_name=address_lines[0] if address_lines else name,
        address=", ".join(address_lines[1:]),
        distance=str(row.get("distance") or "").strip(),
        availability=availability,
        is_available="no available" not in availability.lower(),
        search_query=search_query,
    )


class SlotCrawler:
    """Scrapes location availability for a list of search queries."""

    def __init__(
        self,
        settings: CrawlerSettings,
        logger: Optional[ComponentLogger] = None,
        report_generator: Optional[ReportGenerator] = None,
    ):
        self.settings = settings
        self.logger = logger or ComponentLogger("slot.crawler")
        self.report_generator = report_generator or ReportGenerator()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    async def crawl(self, search_queries: Sequence[SearchQuery]) -> CrawlResult:
        """
        Run every search query in one browser session.

        A failing query is logged and skipped; the crawl only fails when no
        query produced results.

        Raises:
            CrawlError: if the session could not be opened or every query failed.
        """
        if not search_queries:
            raise CrawlError("No search locations configured")

        search_results: List[SearchResult] = []
        failures: Dict[str, str] = {}

        try:
            await self._open()
            await self._visit_initial_page()
            await self._click_individual_booking()

            for index, query in enumerate(search_queries):
                try:
                    search_results.append(await self._search(query))
                except Exception as e:
                    failures[query.name] = str(e)
                    self.logger.warning(
                        f"Search failed for {query.name}",
                        extra={"postcode": query.postcode, "state": query.state, "error": str(e)},
                    )

                if index < len(search_queries) - 1 and self._page:
                    await self._page.wait_for_timeout(self.settings.search_delay * 1000)

        except CrawlError:
            raise
        except Exception as e:
            raise CrawlError(f"Browser session failed: {e}") from e
        finally:
            await self._close()

        if not search_results:
            raise CrawlError(f"All {len(search_queries)} searches failed: {failures}")

        crawl_result = CrawlResult(timestamp=datetime.now(), search_results=search_results)
        crawl_result.message = self.report_generator.generate_crawl_summary(crawl_result)

        self.logger.info(
            "Crawl completed",
            extra={
                "searches": len(search_results),
                "failed_searches": len(failures),
                "locations": len(crawl_result.locations),
                "available": len(crawl_result.available_locations),
            },
        )
        return crawl_result

    async def _open(self) -> None:
        self.logger.info("Initializing browser", extra={"headless": self.settings.headless})
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.settings.headless,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        self._page = await self._browser.new_page(user_agent=USER_AGENT)
        self._page.set_default_timeout(self.settings.timeout)

    async def _close(self) -> None:
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()
        self._browser = None
        self._playwright = None
        self._page = None

    def _require_page(self) -> Page:
        if not self._page:
            raise CrawlError("Browser not initialized")
        return self._page

    async def _visit_initial_page(self) -> None:
        page = self._require_page()
        self.logger.info("Visiting booking site", extra={"url": self.settings.base_url})
        await page.goto(self.settings.base_url, wait_until="networkidle")
        await page.wait_for_load_state("domcontentloaded")

        title = (await page.title()).lower()
        if "expired" in title:
            self.logger.warning("Session expired page detected, starting a new session")
            reset_url = self.settings.base_url.rstrip("/") + "/" + SESSION_RESET_PATH
            await page.goto(reset_url, wait_until="networkidle")
            await page.wait_for_load_state("domcontentloaded")

    async def _click_individual_booking(self) -> None:
        page = self._require_page()
        await page.wait_for_selector(INDIVIDUAL_BOOKING_BUTTON, timeout=10000)
        await page.click(INDIVIDUAL_BOOKING_BUTTON)
        await page.wait_for_load_state("networkidle")
        self.logger.info("Location page loaded")

    async def _search(self, query: SearchQuery) -> SearchResult:
        page = self._require_page()
        self.logger.info(
            f"Searching {query.name}",
            extra={"postcode": query.postcode, "state": query.state},
        )

        if await page.query_selector(POSTCODE_INPUT):
            await page.fill(POSTCODE_INPUT, "")
            await page.fill(POSTCODE_INPUT, query.postcode)
            await page.wait_for_timeout(500)

        if await page.query_selector(STATE_SELECT):
            await page.select_option(STATE_SELECT, query.state)
            await page.wait_for_timeout(500)

        if await page.query_selector(SEARCH_BUTTON):
            await page.click(SEARCH_BUTTON)
            await page.wait_for_load_state("networkidle")
            # results table is filled in client-side after the postback
            await page.wait_for_timeout(3000)
        else:
            self.logger.warning("Search button not found, reading current table")

        await page.wait_for_selector(LOCATION_ROW, timeout=15000)
        rows = await page.eval_on_selector_all(LOCATION_ROW, EXTRACT_ROWS_SCRIPT)
        locations = [parse_location_row(row, query) for row in rows]

        self.logger.info(
            f"Extracted {len(locations)} locations for {query.name}",
            extra={"available": sum(1 for loc in locations if loc.is_available)},
        )
        return SearchResult(search_query=query, locations=locations)
