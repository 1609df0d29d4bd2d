# commerce/repos/coupon_repo.py
from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from commerce.data.models.coupon import CouponModel


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_coupon(self, code: str) -> CouponModel | None:
        return (
            self.db.query(CouponModel)
            .filter(CouponModel.code == normalize_code(code))
            .one_or_none()
        )

    def create_coupon(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        self.db.flush()
        return coupon

    def increment_usage(self, code: str) -> bool:
        # UPDATE coupons SET used_count = used_count + 1
        # WHERE code = 'X' AND (usage_limit IS NULL OR used_count < usage_limit)
        result = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.code == normalize_code(code),
                CouponModel.is_active.is_(True),
                or_(
                    CouponModel.usage_limit.is_(None),
                    CouponModel.used_count < CouponModel.usage_limit,
                ),
            )
            .values(used_count=CouponModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
