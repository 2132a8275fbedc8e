LITERS_TO_GALLONS = 0.264172
KG_TO_LBS = 2.20462


def liters_to_gallons(liters: float) -> float:
    return liters * LITERS_TO_GALLONS


def kg_to_lbs(kg: float) -> float:
    return kg * KG_TO_LBS
