from droplite.main import main

main()
