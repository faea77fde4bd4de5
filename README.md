# leal

An HTTP API for a points-and-cashback loyalty programme, built on Flask and
SQLAlchemy. Businesses set up branches, conversion factors and time-limited
campaigns. Customers earn points and cashback on their purchases and redeem
the points for rewards.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

The package does not install a PostgreSQL driver. To use PostgreSQL, install
one that SQLAlchemy can load for a `postgresql://` URL (for example
`psycopg2`). SQLite needs nothing extra.

## Running the server

```
leal
```

Options:

- `--host` – address to listen on (default `0.0.0.0`)
- `--port` – port to listen on (default `6060`)
- `--log-file` – file the log is appended to (default `error.log`)

Unless `APP_ENV` is `production`, the server first loads a `.env` file from
the working directory, if there is one. The database comes from
`DATABASE_URL` when it is set, for example `sqlite:///leal.db`. Otherwise a
PostgreSQL URL with `sslmode=disable` is built from:

- `POSTGRES_HOST`
- `POSTGRES_PORT`
- `POSTGRES_DB`
- `POSTGRES_USER`
- `POSTGRES_PASSWORD`

Missing tables are created at start-up. If the database cannot be opened, the
error is logged and the command exits with status 1. The server runs on
Flask's built-in development server.

## Endpoints

Every route is under `/api/v1`. Request and response bodies are JSON, and the
field names are in Spanish.

| Method | Path                  | Purpose                                        |
|--------|-----------------------|------------------------------------------------|
| POST   | `/users/`             | Create a user                                  |
| POST   | `/business`           | Register a business and its conversion factor  |
| POST   | `/branches/`          | Create a branch and its conversion factor      |
| GET    | `/branches/?tax_id=N` | List a business's branches                     |
| POST   | `/campaigns/`         | Create a campaign for a branch                 |
| GET    | `/campaigns/?tax_id=N`| List a business's campaigns                    |
| POST   | `/rewards`            | Create a reward                                |
| POST   | `/transactions`       | Queue a purchase to earn points and cashback   |
| POST   | `/redemptions/points` | Redeem points for a reward                     |

`GET /users/<user>/balance` is routed to the same handler as user creation: it
reads a user from the request body and creates it. It does not return a
balance.

In request bodies, missing or `null` fields take their zero value, unknown
fields are ignored, and keys match regardless of case. A value of the wrong
type is a `BAD_REQUEST`. Campaign dates are `YYYY-MM-DD`.

For example, to register a business:

```json
{
  "razon_social": "Empresa XYZ",
  "nit": 987654321,
  "telefono": 123,
  "correo": "contact@example.com",
  "valor_conversion": {
    "valor_minimo": 200,
    "puntos_por_unidad": 20,
    "cashback_por_unidad": 0.10
  }
}
```

Error responses look like this:

```json
{"error": {"code": "NOT_FOUND", "message": "Entity not found"}}
```

| Code                    | Status |
|-------------------------|--------|
| `BAD_REQUEST`           | 400    |
| `SAVE_ERROR`            | 400    |
| `UNAUTHORIZED`          | 401    |
| `NOT_FOUND`             | 404    |
| `DUPLICATE_KEY`         | 409    |
| `INTERNAL_SERVER_ERROR` | 500    |

A missing or non-integer `tax_id` query parameter answers 400 with a plain
message, such as `{"error": "tax_id es requerido"}`. Redeeming a reward
without enough points answers `INTERNAL_SERVER_ERROR`. Every error response
is also logged as a JSON line.

## How earnings are computed

A purchase earns `amount × points per unit` points and
`amount × cashback per unit` cashback. The conversion factor is the branch's
own factor if it has one, and the business-wide factor otherwise. If a
campaign is running for the branch and the amount is at least the campaign's
minimum purchase, both figures are multiplied by the campaign's multipliers.
Points are rounded to the nearest whole number, with halves rounded away from
zero. Cashback is rounded to two decimals the same way.

`POST /transactions` answers as soon as the purchase is queued. A pool of 50
worker threads reads a queue of up to 100 purchases. A worker records the
transaction and its earnings, then adds them to the user's balance.

## Using it as a library

- `leal.api.create_app(service, transaction_service)` builds the Flask
  application from any object that implements `leal.ports.Service` and a
  `leal.transactions.TransactionService`.
- `leal.server.build_app(environ)` opens the database that
  `leal.schema.database_url(environ)` describes and wires everything
  together. The engine, repository and transaction service are kept in
  `app.extensions["leal"]`.
- `leal.schema.init_database(url)` returns a SQLAlchemy engine with every
  table created. For SQLite it turns on foreign keys, and an in-memory
  database is shared across threads.
- `leal.repository.SqlRepository(engine)` stores everything through
  SQLAlchemy and implements `leal.ports.Repository`.
- `leal.services.LoyaltyService(repo)` holds the business rules over any
  repository.
- `leal.transactions.TransactionService(repo, worker_count)` queues purchases
  with `add_transaction` and works through them on background threads.
  `process_transaction` handles one purchase directly and returns its
  earnings. `shutdown` stops the workers once the queue is empty. The service
  is also a context manager.
- `leal.transactions.calculate_earnings(amount, factor, campaign)` returns the
  points and the unrounded cashback of a purchase.
- `leal.requests.parse_request(kind, payload)` decodes a JSON body into one of
  the request dataclasses.
- `leal.errors.parse_error(err)` maps any exception to a `LogError` carrying
  the HTTP status and client message.

## What it does not do

- There is no authentication or authorisation. The `UNAUTHORIZED` code exists,
  but nothing produces it.
- There is no endpoint that reports a user's points or cashback balance.
- A queued purchase that fails, for example because its branch does not
  exist, is only logged. The client is not told.
- No API documentation page is served.