from setupforge.cli import main

main()
