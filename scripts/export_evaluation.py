#!/usr/bin/env python3
"""Write an evaluation workbook to disk.

Run from project root: python scripts/export_evaluation.py <evaluation_id> [out_dir]
"""
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from thodemy import create_app
from thodemy.services.export import build_export


def main(argv):
    if len(argv) < 2:
        print("usage: export_evaluation.py <evaluation_id> [out_dir]")
        return 2
    evaluation_id = int(argv[1])
    out_dir = argv[2] if len(argv) > 2 else os.getcwd()
    app = create_app()
    with app.app_context():
        bio, filename = build_export(evaluation_id, exported_by="script")
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, filename)
    with open(path, "wb") as f:
        f.write(bio.getvalue())
    print(f"wrote {path}")
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
