"""HTTP client for overlay downloads: timeouts, bounded redirects, opt-in retries."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from racegpx.common.config_loader import ConverterConfig
from racegpx.common.constants import USER_AGENT
from racegpx.common.errors import OverlayFetchError, OverlayTimeoutError
from racegpx.common.fs import ensure_dir

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
CHUNK_SIZE = 1024 * 128


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 30.0
    read: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    # One attempt means no automatic retries.
    max_attempts: int = 1
    multiplier: float = 1.0
    max_wait: float = 30.0


@dataclass(frozen=True)
class DownloadResult:
    url: str
    final_url: str
    status_code: int
    content_type: str
    path: Path
    redirects: list[str]


class RetryableHttpError(OverlayFetchError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        max_redirects: int = 10,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.user_agent = user_agent
        self.session = requests.Session()
        self.session.max_redirects = max_redirects

    @classmethod
    def from_config(cls, config: ConverterConfig) -> "HttpClient":
        return cls(
            timeout=TimeoutConfig(connect=config.http_timeout_seconds, read=config.http_timeout_seconds),
            retry=RetryConfig(max_attempts=config.http_max_attempts),
            max_redirects=config.http_max_redirects,
            user_agent=config.user_agent,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": self.user_agent, "Accept": "*/*"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status {status} from {url}")
        if not 200 <= status < 300:
            raise OverlayFetchError(f"HTTP status {status} from {url}")

    def _get_stream(self, url: str, headers: dict[str, str] | None) -> requests.Response:
        try:
            response = self.session.request(
                method="GET",
                url=url,
                headers=self._headers(headers),
                timeout=(self.timeout.connect, self.timeout.read),
                stream=True,
                allow_redirects=True,
            )
        except requests.Timeout as exc:
            raise OverlayTimeoutError(f"Timed out fetching {url}") from exc
        except requests.TooManyRedirects as exc:
            raise OverlayFetchError(f"Too many redirects fetching {url}") from exc
        except requests.RequestException as exc:
            raise OverlayFetchError(f"Transport error fetching {url}: {exc}") from exc

        try:
            self._raise_for_status_or_retry(response, url)
        except OverlayFetchError:
            response.close()
            raise
        return response

    def _write_body(self, response: requests.Response, url: str, target_path: Path) -> None:
        try:
            ensure_dir(target_path.parent)
            with target_path.open("wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        except requests.Timeout as exc:
            target_path.unlink(missing_ok=True)
            raise OverlayTimeoutError(f"Timed out reading body of {url}") from exc
        except (requests.RequestException, OSError) as exc:
            target_path.unlink(missing_ok=True)
            raise OverlayFetchError(f"Failed to store body of {url}: {exc}") from exc
        finally:
            response.close()

    def _download(self, url: str, target_path: Path, headers: dict[str, str] | None) -> DownloadResult:
        response = self._get_stream(url, headers)
        redirects = [hop.headers.get("Location", "") for hop in getattr(response, "history", [])]
        content_type = response.headers.get("Content-Type", "")
        status_code = response.status_code
        final_url = getattr(response, "url", None) or url
        self._write_body(response, url, target_path)
        return DownloadResult(
            url=url,
            final_url=final_url,
            status_code=status_code,
            content_type=content_type,
            path=target_path,
            redirects=redirects,
        )

    def download(
        self,
        url: str,
        target_path: Path,
        *,
        headers: dict[str, str] | None = None,
    ) -> DownloadResult:
        """Fetch ``url`` into ``target_path``, following redirects up to the session cap."""

        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )
        def _wrapped() -> DownloadResult:
            return self._download(url, target_path, headers)

        return _wrapped()
