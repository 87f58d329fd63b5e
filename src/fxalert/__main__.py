from fxalert.main import main

main()
