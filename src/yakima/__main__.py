from yakima.cli import main

main()
