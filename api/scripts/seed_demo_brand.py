from sqlmodel import Session, select

from printorders.db import engine, init_db
from printorders.models import Brand, ClinicLocation, Item, Section
from printorders.utils import canonical_json

init_db()

with Session(engine) as session:
    brand = session.exec(select(Brand).where(Brand.slug == "focus-radiology")).first()
    if brand:
        print(f"Brand {brand.slug} already exists (id {brand.id})")
    else:
        brand = Brand(
            name="Focus Radiology",
            slug="focus-radiology",
            active=True,
            to_emails_json=canonical_json(["orders@focusradiology.example"]),
        )
        session.add(brand)
        session.flush()
        session.add(ClinicLocation(
            brand_id=brand.id,
            key="clinic-1",
            name="Focus Radiology Clinic 1",
            address="1 Example Street",
            sort_order=0,
        ))
        section = Section(brand_id=brand.id, title="A4 Request Pads", sort_order=0)
        session.add(section)
        session.flush()
        session.add(Item(
            section_id=section.id,
            name="A4 General Practitioner Pad",
            code="A4GP",
            field_type="text",
            is_required=True,
            sort_order=0,
        ))
        session.commit()
        print(f"Seeded {brand.slug} (id {brand.id})")
