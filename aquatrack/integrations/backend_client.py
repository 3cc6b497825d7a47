"""
BACKEND HTTP CLIENT

Purpose:
- Talk to the delivery backend over REST (requests)
- Attach the bearer credential supplied by the session
- Translate HTTP failures into the console error taxonomy

Requirements:
• Never hardcode credentials (token comes from the caller / os.getenv)
• 401 or missing token → SessionExpiredError (forced logout, never retried)
• Other non-2xx → BackendRejectedError carrying the backend detail verbatim
• Network failure → BackendUnavailableError
• No client-side retry; timeout only if configured

Author: AquaTrack Operations Console
Phase: Backend integration
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from aquatrack.config import API_BASE_URL, API_TIMEOUT
from aquatrack.core.errors import ConflictError, ConsoleError
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
)

logger = logging.getLogger(__name__)


class SessionExpiredError(ConsoleError):
    """Credential missing or rejected (HTTP 401)."""
    pass


class BackendRejectedError(ConflictError):
    """Backend refused the request (non-2xx other than 401)."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


class BackendUnavailableError(ConsoleError):
    """Backend could not be reached."""
    pass


def extract_detail(payload: Any, fallback: str) -> str:
    """
    Pull a human-readable reason out of an error body.

    Handles {"detail": "..."} and the validation shape
    {"detail": [{"msg": ...}, ...]} (joined with "; ").
    """
    if isinstance(payload, dict):
        detail = payload.get("detail", payload.get("message"))
        if isinstance(detail, str) and detail.strip():
            return detail
        if isinstance(detail, list):
            messages = [
                str(item.get("msg")) for item in detail
                if isinstance(item, dict) and item.get("msg")
            ]
            if messages:
                return "; ".join(messages)
    if isinstance(payload, str) and payload.strip():
        return payload
    return fallback


# ==================================================
# ROLE-SCOPED READ ENDPOINTS
# ==================================================
ORDER_LIST_PATHS = {
    SUPER_ADMIN: "/superadmin/orders/all",
    CHANNEL_ADMIN: "/channel-admin/channel-admin/me/dashboard",
    DELIVERY_MANAGER: "/delivery-manager/me/orders",
    PARTNER: "/partner/orders/me",
    COURIER: "/delivery-partner/me/orders",
}

COMPLAINT_LIST_PATHS = {
    SUPER_ADMIN: "/complaints/complaints/assigned",
    CHANNEL_ADMIN: "/complaints/complaints/channel-admin/my-channel",
    DELIVERY_MANAGER: "/complaints/complaints/assigned",
    PARTNER: "/complaints/complaints/me",
    COURIER: "/complaints/complaints/me",
}

COURIER_LIST_PATHS = {
    SUPER_ADMIN: "/partners/partners/superadmin/delivery-partners",
    DELIVERY_MANAGER: "/delivery-manager/me/delivery-partners",
}

STORE_LIST_PATHS = {
    PARTNER: "/partners/partners/me/stores",
}
DEFAULT_STORE_LIST_PATH = "/store/list/all"

SUPER_ADMIN_PREFIX = "/partners/partners/superadmin"


def _as_list(data: Any, key: str) -> List[Dict[str, Any]]:
    """Accept either a bare list or an envelope holding the list under `key`."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    return []


class BackendClient:
    """
    REST client bound to one signed-in role.

    Args:
        role: Role of the signed-in user; selects role-scoped read endpoints
        base_url: Backend root
        token_provider: Callable returning the current bearer token (or None)
        session: requests.Session compatible object
        timeout: Seconds, or None to wait for the backend
    """

    def __init__(
        self,
        role: str,
        base_url: str = API_BASE_URL,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        session: Optional[Any] = None,
        timeout: Optional[float] = API_TIMEOUT,
    ):
        self.role = role
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or (lambda: None)
        self.session = session or requests.Session()
        self.timeout = timeout

    # --------------------------------------------------
    # Transport
    # --------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        token = self.token_provider()
        if not token:
            raise SessionExpiredError("Authentication failed: please log in again")
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = self._headers()

        try:
            logger.debug(f"{method} {url}")
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )

        except requests.exceptions.Timeout:
            logger.error(f"Backend timeout: {method} {path}")
            raise BackendUnavailableError(f"Backend did not respond in time ({path})")

        except requests.exceptions.RequestException as e:
            logger.error(f"Backend unreachable: {method} {path}: {str(e)}")
            raise BackendUnavailableError(f"Backend unreachable ({path})") from e

        if response.status_code == 401:
            logger.warning(f"401 from {method} {path}; session invalid")
            raise SessionExpiredError("Session expired. Please login again.")

        if not 200 <= response.status_code < 300:
            try:
                body = response.json()
            except ValueError:
                body = getattr(response, "text", "")
            detail = extract_detail(body, f"Server error: {response.status_code}")
            logger.warning(f"{method} {path} rejected ({response.status_code}): {detail}")
            raise BackendRejectedError(response.status_code, detail)

        if response.status_code == 204 or not getattr(response, "content", b""):
            return None

        try:
            return response.json()
        except ValueError:
            return None

    def _get(self, path: str, **kwargs) -> Any:
        return self._request("GET", path, **kwargs)

    def _post(self, path: str, **kwargs) -> Any:
        return self._request("POST", path, **kwargs)

    def _put(self, path: str, **kwargs) -> Any:
        return self._request("PUT", path, **kwargs)

    def _patch(self, path: str, **kwargs) -> Any:
        return self._request("PATCH", path, json=kwargs.pop("json", {}), **kwargs)

    def _delete(self, path: str, **kwargs) -> Any:
        return self._request("DELETE", path, **kwargs)

    # ==================================================
    # READS
    # ==================================================
    def list_orders(self) -> List[Dict[str, Any]]:
        path = ORDER_LIST_PATHS.get(self.role, ORDER_LIST_PATHS[SUPER_ADMIN])
        return _as_list(self._get(path), "orders")

    def list_stores(self) -> List[Dict[str, Any]]:
        path = STORE_LIST_PATHS.get(self.role, DEFAULT_STORE_LIST_PATH)
        return _as_list(self._get(path), "stores")

    def list_managers(self) -> List[Dict[str, Any]]:
        return _as_list(self._get(f"{SUPER_ADMIN_PREFIX}/list-delivery-managers"), "managers")

    def list_couriers(self) -> List[Dict[str, Any]]:
        path = COURIER_LIST_PATHS.get(self.role, COURIER_LIST_PATHS[SUPER_ADMIN])
        return _as_list(self._get(path), "delivery_partners")

    def list_partners(self) -> List[Dict[str, Any]]:
        return _as_list(self._get("/partners/partners/list"), "partners")

    def list_channel_admins(self) -> List[Dict[str, Any]]:
        return _as_list(self._get(f"{SUPER_ADMIN_PREFIX}/list-channel-admins"), "channel_admins")

    def list_complaints(self) -> List[Dict[str, Any]]:
        path = COMPLAINT_LIST_PATHS.get(self.role, COMPLAINT_LIST_PATHS[SUPER_ADMIN])
        return _as_list(self._get(path), "complaints")

    def list_unassigned_bottles(self) -> List[Dict[str, Any]]:
        return _as_list(self._get("/bottle/superadmin/unassigned-bottles"), "bottles")

    def bottle_summary(self) -> Dict[str, Any]:
        return self._get("/bottle/superadmin/summary") or {}

    def store_empty_counts(self) -> List[Dict[str, Any]]:
        return _as_list(self._get("/bottle/superadmin/store-empty-counts"), "stores")

    def partner_empty_bottles(self) -> int:
        data = self._get("/bottle/partner/me/empty-bottles") or {}
        return data.get("pending_empty_bottles", 0) if isinstance(data, dict) else 0

    # ==================================================
    # ORDER MUTATIONS
    # ==================================================
    def create_order(self, payload: Dict[str, Any]) -> Any:
        return self._post("/partner/orders", json=payload)

    def approve_order(self, order_id: int) -> Any:
        return self._patch(f"/superadmin/orders/{order_id}/approve")

    def cancel_order(self, order_id: int) -> Any:
        return self._patch(f"/superadmin/orders/{order_id}/cancel")

    def assign_manager(self, order_id: int, manager_id: int) -> Any:
        return self._patch(f"{SUPER_ADMIN_PREFIX}/orders/{order_id}/assign-manager/{manager_id}")

    def assign_courier(self, order_id: int, courier_id: int) -> Any:
        if self.role == DELIVERY_MANAGER:
            path = f"/delivery-manager/orders/{order_id}/assign-delivery-partner/{courier_id}"
        else:
            path = f"{SUPER_ADMIN_PREFIX}/orders/{order_id}/assign-delivery-partner/{courier_id}"
        return self._patch(path)

    def start_pickup(self, order_id: int) -> Any:
        return self._patch(f"/delivery-partner/orders/{order_id}/pickup")

    def report_delivery(self, order_id: int, payload: Dict[str, int]) -> Any:
        return self._put(f"/delivery-partner/orders/{order_id}/report-delivery", json=payload)

    def confirm_delivery(self, order_id: int, payload: Dict[str, Any]) -> Any:
        return self._put(
            f"/partners/partners/partner/orders/{order_id}/confirm-delivery",
            json=payload,
        )

    # ==================================================
    # ADMINISTRATION
    # ==================================================
    def approve_courier(self, courier_id: int) -> Any:
        return self._patch(
            f"{SUPER_ADMIN_PREFIX}/delivery-partners/{courier_id}/approve",
            json={"status": "active"},
        )

    def link_courier(self, courier_id: int, manager_id: int) -> Any:
        return self._patch(
            f"{SUPER_ADMIN_PREFIX}/delivery-partners/{courier_id}/assign-manager/{manager_id}"
        )

    def move_courier(self, courier_id: int, manager_id: int) -> Any:
        """manager_id 0 unassigns."""
        return self._patch(f"{SUPER_ADMIN_PREFIX}/move-dp/{courier_id}/to-manager/{manager_id}")

    def delete_courier(self, courier_id: int) -> Any:
        return self._delete(f"{SUPER_ADMIN_PREFIX}/delete-delivery-partner/{courier_id}")

    def add_manager_stores(self, manager_id: int, store_ids: Sequence[str]) -> Any:
        return self._post(
            f"{SUPER_ADMIN_PREFIX}/managers/{manager_id}/stores/add",
            json={"manager_id": int(manager_id), "store_ids": [str(s) for s in store_ids]},
        )

    def remove_manager_stores(self, manager_id: int, store_ids: Sequence[str]) -> Any:
        return self._post(
            f"{SUPER_ADMIN_PREFIX}/managers/{manager_id}/stores/remove",
            json={"store_ids": [str(s) for s in store_ids]},
        )

    def delete_manager(self, manager_id: int) -> Any:
        return self._delete(f"{SUPER_ADMIN_PREFIX}/delete-manager/{manager_id}")

    def delete_partner(self, partner_id: int) -> Any:
        return self._delete(f"{SUPER_ADMIN_PREFIX}/delete/{partner_id}")

    def delete_channel_admin(self, admin_id: int) -> Any:
        return self._delete(f"{SUPER_ADMIN_PREFIX}/delete-channel-admin/{admin_id}")

    def create_store(self, payload: Dict[str, Any]) -> Any:
        return self._post("/store/create", json=payload)

    def delete_store(self, store_id: str) -> Any:
        return self._delete(f"/store/{store_id}/delete")

    # ==================================================
    # BOTTLES
    # ==================================================
    def generate_qr(self, count: int) -> Any:
        return self._post("/bottle/superadmin/generate-qr", params={"count": count}, json={})

    def assign_bottles(self, qr_codes: Sequence[str], courier_id: int) -> Any:
        return self._post(
            "/bottle/superadmin/assign",
            json={"qr_codes": list(qr_codes), "delivery_boy_id": int(courier_id)},
        )

    # ==================================================
    # COMPLAINTS
    # ==================================================
    def submit_complaint(self, payload: Dict[str, Any]) -> Any:
        return self._post("/complaints/complaints/submit", json=payload)

    def resolve_complaint(self, complaint_id: str, payload: Dict[str, Any]) -> Any:
        return self._patch(f"/complaints/complaints/{complaint_id}/resolve", json=payload)
