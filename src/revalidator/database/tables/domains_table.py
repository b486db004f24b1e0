from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from revalidator.database.tables.base_class import BasePublic


class Domains(BasePublic):
    # Registrable domain name, stored exactly as the scheduler keys it
    name: Mapped[str] = mapped_column(String(253), unique=True, index=True)
    last_accessed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), index=True
    )
