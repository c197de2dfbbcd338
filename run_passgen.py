from passgen import generate_password

def main() -> None:
    password = generate_password()  # uses DEFAULT_CONFIG from config.py
    print("\n[Password Generator]")
    print(f"Generated password: {password}\n")

if __name__ == "__main__":
    main()
