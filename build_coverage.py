#!/usr/bin/env python3
from treatment_coverage.cli import parse_args
from treatment_coverage.build import build_coverage

def main():
    args = parse_args()
    build_coverage(args)

if __name__ == "__main__":
    main()
