from pydantic import BaseModel, Field
from typing import List, Literal, Union


class EgyptianIdScan(BaseModel):
    """One person read off an Egyptian national ID card."""
    name: str = Field(description="Full name in Arabic exactly as printed on the card.")
    national_id: str = Field(description="The 14-digit national ID number, digits only.")
    confidence: int = Field(ge=0, le=100, description="How sure you are of the name and number, 0-100.")


class RussianPassportScan(BaseModel):
    """One person read off a Russian passport."""
    name: str = Field(description="Full name in Latin letters as printed in the machine readable zone.")
    passport_number: str = Field(description="Passport number without spaces.")
    nationality: str = Field("Russian", description="Nationality as printed.")
    gender: Literal["male", "female"] = Field(description="male or female.")
    confidence: int = Field(ge=0, le=100, description="How sure you are of the name and number, 0-100.")


class EgyptianIdScanBatch(BaseModel):
    results: List[EgyptianIdScan] = []


class RussianPassportScanBatch(BaseModel):
    results: List[RussianPassportScan] = []


class OcrScanResult(BaseModel):
    results: List[Union[EgyptianIdScan, RussianPassportScan]] = []
    needs_review: bool = False


class UploadResult(BaseModel):
    url: str
