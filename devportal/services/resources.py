"""Request builders for portal resources.

Apps, devices, certificates and provisioning profiles are treated as opaque
records. Listings go through the :class:`Paginator`; create, delete and
revoke calls are marked as mutating so the transport attaches CSRF tokens.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Literal, Mapping

from devportal.infrastructure.http import (
    AuthSession,
    PageRequest,
    Paginator,
    PortalRequest,
    Record,
    parse_json,
)
from devportal.infrastructure.observability.logging import get_logger, log_context

logger = get_logger(__name__)

AppKind = Literal["explicit", "wildcard"]


class PortalResources:
    """Resource-level operations bound to one authenticated session."""

    def __init__(
        self,
        auth: AuthSession,
        paginator: Paginator,
        team_id: Callable[[], str],
    ) -> None:
        self.auth = auth
        self.paginator = paginator
        self._team_id = team_id

    @property
    def page_size(self) -> int:
        return self.paginator.page_size

    # -------------------- request helpers --------------------
    def _url(self, path: str) -> str:
        return self.auth.settings.portal_url(f"account/ios/{path}")

    def _post(
        self,
        path: str,
        data: Mapping[str, Any],
        *,
        mutating: bool = False,
    ) -> Any:
        payload = {"teamId": self._team_id(), **data}
        request = PortalRequest(
            "POST", self._url(path), data=payload, mutating=mutating)
        return self.auth.transport.execute(request, self.auth)

    def _list(
        self,
        path: str,
        key: str,
        *,
        extra: Mapping[str, Any] | None = None,
        sort: str | None = None,
        page_size: int | None = None,
    ) -> list[Record]:
        def fetch_page(page: PageRequest) -> list[Record]:
            response = self._post(path, {**page.as_params(), **(extra or {})})
            return parse_json(response, key)

        with log_context(resource=key):
            return self.paginator.fetch_all(fetch_page, page_size=page_size, sort=sort)

    # -------------------- apps --------------------
    def apps(self, page_size: int | None = None) -> list[Record]:
        return self._list("identifiers/listAppIds.action", "appIds", page_size=page_size)

    def create_app(self, kind: AppKind, name: str, bundle_id: str) -> Record:
        """Register an explicit or wildcard app id."""
        if kind not in ("explicit", "wildcard"):
            raise ValueError(f"Unknown app id kind: {kind!r}")
        data: dict[str, Any] = {
            "name": name,
            "identifier": bundle_id,
            "type": kind,
        }
        if kind == "explicit":
            data.update(push="on", inAppPurchase="on", gameCenter="on")
        response = self._post("identifiers/addAppId.action", data, mutating=True)
        logger.info("Created app id %s", bundle_id)
        return parse_json(response, "appId")

    def delete_app(self, app_id: str) -> Record:
        response = self._post(
            "identifiers/deleteAppId.action", {"appIdId": app_id}, mutating=True)
        return parse_json(response)

    # -------------------- devices --------------------
    def devices(self, page_size: int | None = None) -> list[Record]:
        return self._list("device/listDevices.action", "devices", page_size=page_size)

    def create_device(self, name: str, udid: str) -> Record:
        response = self._post(
            "device/addDevice.action",
            {"name": name, "deviceNumber": udid},
            mutating=True,
        )
        logger.info("Registered device %s", name)
        return parse_json(response, "device")

    # -------------------- certificates --------------------
    def certificates(
        self, types: Iterable[str], page_size: int | None = None
    ) -> list[Record]:
        return self._list(
            "certificate/listCertRequests.action",
            "certRequests",
            extra={"types": ",".join(types)},
            sort="certRequestStatusCode=asc",
            page_size=page_size,
        )

    def create_certificate(
        self, certificate_type: str, csr: str, app_id: str | None = None
    ) -> Record:
        data = {"type": certificate_type, "csrContent": csr}
        if app_id:
            data["appIdId"] = app_id
        response = self._post(
            "certificate/submitCertificateRequest.action", data, mutating=True)
        return parse_json(response, "certRequest")

    def revoke_certificate(self, certificate_id: str, certificate_type: str) -> list[Record]:
        response = self._post(
            "certificate/revokeCertificate.action",
            {"certificateId": certificate_id, "type": certificate_type},
            mutating=True,
        )
        logger.info("Revoked certificate %s", certificate_id)
        return parse_json(response, "certRequests")

    # -------------------- provisioning profiles --------------------
    def provisioning_profiles(self, page_size: int | None = None) -> list[Record]:
        return self._list(
            "profile/listProvisioningProfiles.action",
            "provisioningProfiles",
            extra={"includeInactiveProfiles": "true", "onlyCountLists": "true"},
            page_size=page_size,
        )

    def create_provisioning_profile(
        self,
        name: str,
        distribution_method: str,
        app_id: str,
        certificate_ids: Iterable[str],
        device_ids: Iterable[str],
    ) -> Record:
        response = self._post(
            "profile/createProvisioningProfile.action",
            {
                "provisioningProfileName": name,
                "appIdId": app_id,
                "distributionType": distribution_method,
                "certificateIds": list(certificate_ids),
                "deviceIds": list(device_ids),
            },
            mutating=True,
        )
        return parse_json(response, "provisioningProfile")

    def delete_provisioning_profile(self, profile_id: str) -> Record:
        response = self._post(
            "profile/deleteProvisioningProfile.action",
            {"provisioningProfileId": profile_id},
            mutating=True,
        )
        return parse_json(response)


__all__ = ["AppKind", "PortalResources"]
