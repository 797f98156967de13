from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlsplit

from fe_ci.services.artifacts.config import DEFAULT_NPM_REGISTRY_REPO


@dataclass(frozen=True, slots=True)
class JfrogCredentials:
    """Connection parameters for the JFrog npm registry.

    `url` is the npm registry endpoint packages are published to; `repo` is
    the Artifactory repository name used for the browse links posted on PRs.
    """

    url: str = ""
    user: str = ""
    base64_token: str = ""
    repo: str = DEFAULT_NPM_REGISTRY_REPO

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> JfrogCredentials:
        return cls(
            url=env.get("JFROG_URL", ""),
            user=env.get("JFROG_USER", ""),
            base64_token=env.get("JFROG_BASE64_TOKEN", ""),
            repo=env.get("NPM_REGISTRY") or DEFAULT_NPM_REGISTRY_REPO,
        )

    @property
    def url_no_scheme(self) -> str:
        """`https://x.jfrog.io/api/npm/` -> `//x.jfrog.io/api/npm/` (npmrc key form)."""
        return self.url.replace("https:", "", 1)

    @property
    def ui_base_url(self) -> str:
        parts = urlsplit(self.url)
        if not parts.scheme or not parts.netloc:
            return self.url.rstrip("/")
        return f"{parts.scheme}://{parts.netloc}"

    def render_npmrc(self, scope: str) -> str:
        key = self.url_no_scheme
        return "\n".join(
            [
                f"{scope}:registry={self.url}",
                f"{key}:_auth={self.base64_token}",
                f"{key}:always-auth=true",
                f"{key}:email={self.user}",
            ]
        )

    def artifact_browse_url(self, scope: str, name: str, version: str) -> str:
        return (
            f"{self.ui_base_url}/ui/repos/tree/NpmInfo/{self.repo}"
            f"/{scope}/{name}/-/{scope}/{name}-{version}.tgz"
        )

    def __repr__(self) -> str:
        # The token must never end up in a CI log.
        return f"JfrogCredentials(url={self.url!r}, user={self.user!r}, repo={self.repo!r})"
