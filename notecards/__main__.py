from notecards.app import main

main()
