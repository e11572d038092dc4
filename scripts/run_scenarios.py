"""Run scenario definitions and write outputs to out/scenarios."""

from __future__ import annotations

import json
from pathlib import Path

from json_tabular.csv_io import write_csv
from json_tabular.flattener import flatten
from json_tabular.scenarios import get_scenarios
from json_tabular.sql_generator import generate_sql


def main() -> None:
    out_dir = Path("out/scenarios")
    out_dir.mkdir(parents=True, exist_ok=True)

    for scenario in get_scenarios():
        scenario_dir = out_dir / scenario.name
        scenario_dir.mkdir(parents=True, exist_ok=True)

        input_path = scenario_dir / "input.json"
        input_path.write_text(json.dumps(scenario.data, indent=2), encoding="utf-8")

        records, depth = flatten(scenario.data)

        write_csv(records, scenario_dir / "output.csv")
        sql_path = scenario_dir / "output.sql"
        sql_path.write_text(generate_sql(records, scenario.name), encoding="utf-8")

        print(f"{scenario.name}: {len(records)} records, depth {depth}, wrote {scenario_dir}")


if __name__ == "__main__":
    main()
