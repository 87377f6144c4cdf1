"""
Factory defaults: the emulsifier equipment catalogue and the demo documents.

The demo batching sheet and process record contain planted defects so a
first audit run has something to find:
  - PRE quantity 13.00 kg where 0.40 % of 3000 kg is 12.00 kg
  - vague wording ("appropriate time") in the water-phase step
  - extract/preservative added at 55 ℃ although the notes require < 45 ℃
  - homogenizer set to 2000 rpm on FMA130 (limit 1500 rpm)
"""

from __future__ import annotations

from gmpc_audit.models.equipment import EquipmentProfile, EquipmentRegistry, ParameterLimit


def _common_limits() -> list[ParameterLimit]:
    return [
        ParameterLimit(id="1", name="Main pot heating temperature", min=0, max=95, unit="℃"),
        ParameterLimit(id="4", name="Main pot vacuum", min=-0.09, max=0, unit="MPa"),
        ParameterLimit(id="5", name="Cooling discharge temperature", min=35, max=45, unit="℃"),
    ]


def default_equipment_profiles() -> list[EquipmentProfile]:
    return [
        EquipmentProfile(
            id="1",
            code="FMA010",
            name="100L vacuum homogenizing emulsifier",
            parameters=(
                *_common_limits(),
                ParameterLimit(id="2", name="Main pot homogenizer speed", min=0, max=3600, unit="rpm"),
                ParameterLimit(id="3", name="Main pot frame stirring", min=0, max=60, unit="rpm"),
            ),
        ),
        EquipmentProfile(
            id="2",
            code="FMA050",
            name="500L vacuum homogenizing emulsifier",
            parameters=(
                *_common_limits(),
                ParameterLimit(id="2", name="Main pot homogenizer speed", min=0, max=3000, unit="rpm"),
                ParameterLimit(id="3", name="Main pot frame stirring", min=0, max=50, unit="rpm"),
            ),
        ),
        EquipmentProfile(
            id="3",
            code="FMA130",
            name="1000L/1T emulsifying unit",
            parameters=(
                *_common_limits(),
                # lower homogenizer ceiling than the smaller units
                ParameterLimit(id="2", name="Main pot homogenizer speed", min=0, max=1500, unit="rpm"),
                ParameterLimit(id="3", name="Main pot frame stirring", min=0, max=40, unit="rpm"),
                ParameterLimit(id="6", name="Oil phase pot stirring", min=0, max=960, unit="rpm"),
            ),
        ),
    ]


def default_registry() -> EquipmentRegistry:
    return EquipmentRegistry(default_equipment_profiles())


SAMPLE_FORMULA_TEXT = """\
Semi-finished product batch batching sheet
Product: Camellia Deep Moisture Hand Cream
Formula no.: 202067   Planned quantity: 3000kg   Version: V1.1

No  Phase  Material code  Name                 %       Formula qty (kg)
1   A      YZ001          Oil A                30.00   900.00
2   A      YZ015          Emulsifier           2.00    60.00
3   B      WATER          Deionized water      65.00   1950.00
4   B      GLY            Glycerin             2.00    60.00
5   C      EXT            Extract              0.50    15.00
6   C      F060           pH adjuster          0.10    3.00
7   D      PRE            Preservative         0.40    13.00
Total                                          100.00  3000.00

[Key notes / precautions]
1. ZC016 is the viscosity modifier, addition range 0.05%-0.25%.
2. Critical: fragrance and extract must be added only after the batch cools below 45℃ to protect actives.
3. Emulsification homogenizing time is strictly limited to within 5 minutes."""


SAMPLE_PROCESS_TEXT = """\
Production process record
Production equipment code: FMA130 (1T emulsifier)

1. Preparation
Check equipment cleanliness and confirm no residue.

2. Process steps
1. Phase B preparation:
   1.1 Charge phase B materials (water, glycerin) into the water pot.
   1.2 Start heating to 85℃ and stir for an appropriate time.

2. Phase A preparation:
   2.1 Charge phase A materials into the oil pot.
   2.2 Heat to dissolve, temperature controlled at 85℃.

3. Emulsifying and homogenizing:
   3.1 Draw the oil phase into the main pot (water phase already present).
   3.2 Start the homogenizer, set speed 2000rpm.
   3.3 Homogenize for 3 minutes.

4. Cooling and additions:
   4.1 Start circulating cooling water.
   4.2 When the temperature drops to 55℃, add phase C extract and phase D preservative.
   4.3 Continue stirring while cooling to discharge temperature.

5. Discharge:
   Test physicochemical indicators; discharge when within specification."""


def demo_text() -> str:
    """Batching sheet + process record as one plain-text fallback document."""
    return f"[DEMO TEXT MODE - simulated PDF content]\n\n{SAMPLE_FORMULA_TEXT}\n\n{SAMPLE_PROCESS_TEXT}"
