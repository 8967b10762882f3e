from pydantic import BaseModel


class PaymentIntentOut(BaseModel):
    bookingId: str
    clientSecret: str
    paymentIntentId: str
    publishableKey: str = ""
    amount: int
    currency: str
