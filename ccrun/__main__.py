from ccrun.app import main


main()
