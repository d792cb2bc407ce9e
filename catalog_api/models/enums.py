from enum import Enum


class ProductCategory(str, Enum):
    CAR = "Car"
    BIKE = "Bike"
    BOAT = "Boat"

    @classmethod
    def values(cls):
        return [member.value for member in cls]
