from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union
from app.models import PaymentStatus

# Required fields are checked by the payment workflow so that a missing
# value produces the service's own 400 message instead of a schema error.

class PaymentCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_id: Optional[Union[str, int]] = Field(None, alias="applicationId", examples=["A1"])
    customer_phone: Optional[Union[str, int]] = Field(None, alias="customerPhone", examples=["9990001111"])
    customer_name: Optional[str] = Field(None, alias="customerName", examples=["Asha Rao"])

class PaymentCreateResponse(BaseModel):
    success: bool = True
    payment_session_id: Optional[str]
    order_id: str
    amount: float

class PaymentVerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(None, alias="orderId", examples=["ORD_A1_1724000000000"])

class PaymentVerifyResponse(BaseModel):
    success: bool = True
    status: PaymentStatus
    cashfree_status: Optional[str]
    order_id: str

class ErrorResponse(BaseModel):
    success: bool = False
    message: str
