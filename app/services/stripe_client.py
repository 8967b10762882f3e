from dataclasses import dataclass
import requests

@dataclass
class StripeConfig:
    secret_key: str         # sk_test_... / sk_live_...
    api_base: str = "https://api.stripe.com"
    timeout: int = 25

class StripeError(RuntimeError):
    pass

def _flatten(data: dict, prefix: str = "") -> dict:
    # Stripe expects form encoding with bracketed keys: metadata[bookingId]=...
    out = {}
    for k, v in data.items():
        key = f"{prefix}[{k}]" if prefix else k
        if isinstance(v, dict):
            out.update(_flatten(v, key))
        elif isinstance(v, bool):
            out[key] = "true" if v else "false"
        elif v is not None:
            out[key] = str(v)
    return out

class StripeClient:
    def __init__(self, cfg: StripeConfig):
        self.cfg = cfg

    def request(self, method: str, path: str, params: dict | None = None, idempotency_key: str | None = None) -> dict:
        url = f"{self.cfg.api_base.rstrip('/')}{path}"
        headers = {"Authorization": f"Bearer {self.cfg.secret_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        try:
            r = requests.request(
                method=method.upper(),
                url=url,
                data=_flatten(params or {}) if method.upper() != "GET" else None,
                headers=headers,
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            raise StripeError(f"Stripe request failed: {e}") from e
        try:
            data = r.json() if r.text else {}
        except ValueError:
            data = {"raw": r.text}
        if r.status_code >= 400:
            err = data.get("error") if isinstance(data, dict) else None
            msg = (err or {}).get("message") if isinstance(err, dict) else None
            raise StripeError(f"Stripe {r.status_code}: {msg or data}")
        return data

    def create_payment_intent(self, *, amount_cents: int, currency: str, metadata: dict, receipt_email: str = "", idempotency_key: str | None = None) -> dict:
        params = {
            "amount": int(amount_cents),
            "currency": currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if receipt_email:
            params["receipt_email"] = receipt_email
        return self.request("POST", "/v1/payment_intents", params, idempotency_key=idempotency_key)

    def retrieve_payment_intent(self, payment_intent_id: str) -> dict:
        return self.request("GET", f"/v1/payment_intents/{payment_intent_id}")

    def refund_payment_intent(self, *, payment_intent_id: str, idempotency_key: str | None = None) -> dict:
        return self.request("POST", "/v1/refunds", {"payment_intent": payment_intent_id}, idempotency_key=idempotency_key)
